"""
Pydantic schemas for property requests and responses.
Handles listing CRUD, search filters, bulk upload and premium insights.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, Optional, List
from datetime import datetime
from inmobi.models.property import PropertyType, MAX_PRICE, MAX_ROOMS
from inmobi.schemas.user import PublicUserResponse

MAX_BULK_ITEMS = 100
MAX_COMPARE_IDS = 4


def _strip_required(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} cannot be empty")
    return value.strip()


def _clean_list(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(..., min_length=1, max_length=255, examples=["Sunny 3BR House with Garden"])
    description: str = Field(..., min_length=1, max_length=10000)
    price: int = Field(..., gt=0, le=MAX_PRICE, description="Price in whole currency units", examples=[450000])
    address: str = Field(..., min_length=1, max_length=255, examples=["12 Elm Street"])
    city: str = Field(..., min_length=1, max_length=100, examples=["Austin"])
    state: str = Field(..., min_length=1, max_length=100, examples=["TX"])
    zip_code: str = Field(..., min_length=1, max_length=20, examples=["78701"])
    country: str = Field("USA", max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    bedrooms: int = Field(..., ge=0, le=MAX_ROOMS)
    bathrooms: float = Field(..., ge=0, le=MAX_ROOMS, description="Halves allowed, e.g. 2.5")
    square_feet: int = Field(..., gt=0, le=1_000_000)
    property_type: PropertyType
    year_built: Optional[int] = Field(None, ge=1600, le=2100)
    features: List[str] = Field(default_factory=list, examples=[["Pool", "Garage"]])
    images: List[str] = Field(default_factory=list)

    @field_validator("title", "description", "address", "city", "state", "zip_code")
    @classmethod
    def validate_text(cls, v, info):
        return _strip_required(v, info.field_name.replace("_", " ").capitalize())

    @field_validator("bathrooms")
    @classmethod
    def validate_bathrooms(cls, v):
        if (v * 2) != int(v * 2):
            raise ValueError("Bathrooms must be a whole or half number")
        return v

    @field_validator("features", "images")
    @classmethod
    def clean_lists(cls, v):
        return _clean_list(v)

    @model_validator(mode="after")
    def validate_coordinates(self):
        """Both coordinates are provided together or both are None."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together, or both must be None")
        return self


class PropertyCreate(PropertyBase):
    """Schema for creating a new property."""

    is_premium: bool = False


class PropertyUpdate(BaseModel):
    """Partial update. Omitted fields keep their value."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=10000)
    price: Optional[int] = Field(None, gt=0, le=MAX_PRICE)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    bedrooms: Optional[int] = Field(None, ge=0, le=MAX_ROOMS)
    bathrooms: Optional[float] = Field(None, ge=0, le=MAX_ROOMS)
    square_feet: Optional[int] = Field(None, gt=0, le=1_000_000)
    property_type: Optional[PropertyType] = None
    year_built: Optional[int] = Field(None, ge=1600, le=2100)
    is_premium: Optional[bool] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("features", "images")
    @classmethod
    def clean_lists(cls, v):
        return _clean_list(v) if v is not None else v

    @model_validator(mode="after")
    def validate_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together, or both must be None")
        return self


class PropertyResponse(PropertyBase):
    """Property with identifiers, status and timestamps."""

    id: str
    owner_id: str
    is_premium: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    owner: Optional[PublicUserResponse] = None


class NearbyPropertyResponse(PropertyResponse):
    distance_km: float


class PropertyListResponse(BaseModel):
    """Paginated property list."""

    properties: List[PropertyResponse]
    total: int = Field(..., description="Total number of properties matching the criteria")
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class PropertySearchRequest(BaseModel):
    """
    Search filters. Every filter is optional; ``features`` must all be present
    on a listing for it to match.
    """

    location: Optional[str] = Field(None, max_length=255, description="Matches city, state, zip or address")
    property_type: Optional[PropertyType] = None
    min_price: Optional[int] = Field(None, ge=0)
    max_price: Optional[int] = Field(None, ge=0)
    min_beds: Optional[int] = Field(None, ge=0, le=MAX_ROOMS)
    min_baths: Optional[float] = Field(None, ge=0, le=MAX_ROOMS)
    min_sqft: Optional[int] = Field(None, ge=0)
    max_sqft: Optional[int] = Field(None, ge=0)
    features: List[str] = Field(default_factory=list)
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)

    @field_validator("location")
    @classmethod
    def clean_location(cls, v):
        if v is not None:
            return v.strip() or None
        return v

    @field_validator("features")
    @classmethod
    def clean_features(cls, v):
        return _clean_list(v)

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot be greater than max_price")
        if self.min_sqft is not None and self.max_sqft is not None and self.min_sqft > self.max_sqft:
            raise ValueError("min_sqft cannot be greater than max_sqft")
        return self

    def to_query(self) -> Dict[str, Any]:
        """Filters as a JSON-safe dict, without paging and empty values."""
        data = self.model_dump(mode="json", exclude={"limit", "offset"}, exclude_none=True)
        if not data.get("features"):
            data.pop("features", None)
        return data


class BulkUploadRequest(BaseModel):
    """Raw listing payloads; each one is validated on its own."""

    properties: List[Dict[str, Any]] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)


class BulkUploadError(BaseModel):
    index: int
    error: str


class BulkUploadResponse(BaseModel):
    successful: int
    failed: int
    errors: List[BulkUploadError]
    created: List[PropertyResponse]


class PersonalizedDescriptionResponse(BaseModel):
    property_id: str
    description: str
    personalized: bool = Field(..., description="False when the template fallback was used")


class ProjectionPoint(BaseModel):
    year: int
    value: int


class ValuePredictionResponse(BaseModel):
    property_id: str
    current_price: int
    years: int
    annual_growth_rate: float
    predicted_value: int
    comparable_count: int
    comparable_price_per_sqft: Optional[float] = None
    projection: List[ProjectionPoint]
