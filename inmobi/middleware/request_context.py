"""
Request context middleware: request ids, timing, size limits and per-client rate limiting.
"""

from typing import Callable, Dict, Any
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from inmobi.services.error_handler import ErrorHandlerService
from inmobi.utils.exceptions import APIException, BadRequestError, RateLimitExceededError

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an 8-character ``X-Request-ID`` and reports the
    handling time in ``X-Process-Time``.

    Oversized bodies are rejected from the Content-Length header. Rate
    limiting is a fixed window per client IP and is off unless enabled.
    Forwarding headers name the client only when ``trust_proxy_headers`` is
    set; otherwise the socket peer address is used.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 50 * 1024 * 1024,
        enable_request_logging: bool = False,
        enable_rate_limiting: bool = False,
        rate_limit_requests: int = 100,
        rate_limit_window: int = 60,
        trust_proxy_headers: bool = False
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging
        self.enable_rate_limiting = enable_rate_limiting
        self.rate_limit_requests = rate_limit_requests
        self.rate_limit_window = rate_limit_window
        self.trust_proxy_headers = trust_proxy_headers
        self.request_counts: Dict[str, Dict[str, Any]] = {}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.time()

        try:
            self._validate_request_size(request)
            if self.enable_rate_limiting:
                self._apply_rate_limiting(request, start_time)
        except APIException as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        if self.enable_request_logging:
            logger.info(f"Request [{request_id}]: {request.method} {request.url.path}")

        response = await call_next(request)

        processing_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{processing_time:.4f}"

        if self.enable_request_logging:
            logger.info(
                f"Response [{request_id}]: {response.status_code} - {processing_time:.3f}s",
                extra={"request_id": request_id, "status_code": response.status_code}
            )
        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If Content-Length is malformed or above the limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return
        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")
        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )

    def _apply_rate_limiting(self, request: Request, now: float) -> None:
        """
        Raises:
            RateLimitExceededError: If the client used up its window
        """
        client_ip = self._get_client_ip(request)

        expired = [
            ip for ip, data in self.request_counts.items()
            if now - data["window_start"] > self.rate_limit_window * 2
        ]
        for ip in expired:
            del self.request_counts[ip]

        client_data = self.request_counts.setdefault(client_ip, {"count": 0, "window_start": now})
        if now - client_data["window_start"] > self.rate_limit_window:
            client_data["count"] = 0
            client_data["window_start"] = now

        if client_data["count"] >= self.rate_limit_requests:
            retry_after = int(self.rate_limit_window - (now - client_data["window_start"]))
            logger.warning(f"Rate limit exceeded for {client_ip}")
            raise RateLimitExceededError(max(retry_after, 1))

        client_data["count"] += 1

    def _get_client_ip(self, request: Request) -> str:
        if not self.trust_proxy_headers:
            return request.client.host if request.client else "unknown"
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
        return request.client.host if request.client else "unknown"
