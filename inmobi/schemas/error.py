"""
Error response schemas used in OpenAPI documentation.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any


class ErrorDetail(BaseModel):
    """Single field-level error."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message", examples=["Invalid email format"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message", examples=["Request validation failed"])
    timestamp: str = Field(..., description="Error timestamp in ISO format", examples=["2026-01-01T00:00:00Z"])
    request_id: Optional[str] = Field(None, description="Request identifier for tracking", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Validation error details")


class APIErrorResponse(BaseModel):
    """Envelope wrapping every error body."""

    error: ErrorResponse


def _error_example(code: str, message: str) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "timestamp": "2026-01-01T00:00:00Z",
            "request_id": "abc12345",
        }
    }


def _response(description: str, code: str, message: str) -> dict:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _error_example(code, message)}},
    }


COMMON_ERROR_RESPONSES = {
    400: _response("Bad Request - Invalid request parameters", "BAD_REQUEST", "Invalid request parameters"),
    401: _response("Unauthorized - Authentication required", "UNAUTHORIZED", "Authentication required"),
    403: _response("Forbidden - Access denied", "FORBIDDEN", "Insufficient permissions to update this property"),
    404: _response("Not Found - Resource does not exist", "NOT_FOUND", "Property not found"),
    409: _response("Conflict - Resource already exists", "CONFLICT", "User with identifier 'jane' already exists"),
    422: _response("Validation Error - Invalid input data", "VALIDATION_ERROR", "Request validation failed"),
    500: _response("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred"),
    502: _response("Bad Gateway - Provider failure", "EXTERNAL_SERVICE_ERROR", "Stripe request failed: 500"),
    503: _response("Service Unavailable", "SERVICE_UNAVAILABLE", "Payment processing is not configured"),
}

AUTH_ERROR_RESPONSES = {code: COMMON_ERROR_RESPONSES[code] for code in (401, 403, 422)}
CRUD_ERROR_RESPONSES = {code: COMMON_ERROR_RESPONSES[code] for code in (400, 401, 403, 404, 422)}
PREMIUM_ERROR_RESPONSES = {code: COMMON_ERROR_RESPONSES[code] for code in (400, 401, 403, 502)}
