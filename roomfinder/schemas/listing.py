"""
Pydantic schemas for listing requests and responses.
Handles listing creation, partial updates, search criteria and image operations.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from roomfinder.models.listing import PropertyType, TenantPreference, is_image_url


def _clean_required_text(value: str, field_name: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value.strip()


def _check_image_urls(urls: List[str]) -> List[str]:
    for url in urls:
        if not is_image_url(url):
            raise ValueError(f"Invalid image URL: {url}")
    return urls


class ListingBase(BaseModel):
    """Base listing schema with common fields."""

    title: str = Field(
        ...,
        max_length=255,
        description="Listing title",
        examples=["Sunny room near metro"]
    )

    description: str = Field(
        ...,
        max_length=5000,
        description="Free-text description of the room",
        examples=["Furnished room with attached bathroom and balcony."]
    )

    location: str = Field(
        ...,
        max_length=255,
        description="Area, street or city",
        examples=["Koramangala, Bangalore"]
    )

    rent: Decimal = Field(
        ...,
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Monthly rent",
        examples=[8500]
    )

    property_type: PropertyType = Field(
        ...,
        description="Kind of accommodation",
        examples=["1BHK"]
    )

    tenant_preference: TenantPreference = Field(
        ...,
        description="Preferred tenants",
        examples=["Students"]
    )

    contact_number: str = Field(
        ...,
        pattern=r"^[0-9]{10}$",
        description="Ten digit contact number",
        examples=["9876543210"]
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        """Validate and clean title."""
        return _clean_required_text(v, "Title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        """Validate and clean description."""
        return _clean_required_text(v, "Description")

    @field_validator("location")
    @classmethod
    def validate_location(cls, v):
        """Validate and clean location."""
        return _clean_required_text(v, "Location")


class ListingCreate(ListingBase):
    """Schema for creating a new listing. The owner always comes from the session."""

    images: List[str] = Field(
        default_factory=list,
        description="Image URLs already uploaded for this listing"
    )

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "title": "Sunny room near metro",
                "description": "Furnished room with attached bathroom and balcony.",
                "location": "Koramangala, Bangalore",
                "rent": 8500,
                "property_type": "1BHK",
                "tenant_preference": "Students",
                "contact_number": "9876543210",
                "images": []
            }
        }
    )

    @field_validator("images")
    @classmethod
    def validate_images(cls, v):
        return _check_image_urls(v)


class ListingUpdate(BaseModel):
    """
    Schema for partial listing updates.

    Only fields present in the payload are changed. Ownership, id and
    timestamps are not part of this schema and are rejected.
    """

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=255)
    rent: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    property_type: Optional[PropertyType] = None
    tenant_preference: Optional[TenantPreference] = None
    contact_number: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    images: Optional[List[str]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("title", "description", "location")
    @classmethod
    def validate_text(cls, v, info):
        if v is None:
            return v
        return _clean_required_text(v, info.field_name.capitalize())

    @field_validator("images")
    @classmethod
    def validate_images(cls, v):
        if v is None:
            return v
        return _check_image_urls(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        """Fields sent as null would clear required columns."""
        nulls = [name for name in self.model_fields_set if getattr(self, name) is None]
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(sorted(nulls))}")
        return self


class ListingResponse(BaseModel):
    """Schema for listing responses."""

    id: str = Field(..., description="Listing identifier")
    title: str
    description: str
    location: str
    rent: float
    property_type: PropertyType
    tenant_preference: TenantPreference
    contact_number: str
    images: List[str] = Field(default_factory=list, description="Image URLs in display order")
    owner_id: str = Field(..., description="ID of the user who posted the listing")
    created_at: datetime
    updated_at: datetime


class ListingListResponse(BaseModel):
    """Schema for listing collections."""

    listings: List[ListingResponse]
    total: int = Field(..., description="Number of listings returned")
    filtered: bool = Field(
        False,
        description="Whether a search query or criteria narrowed the results"
    )


class ImageRemoveRequest(BaseModel):
    """Schema for detaching an image URL from a listing."""

    url: str = Field(..., description="Image URL to remove from the listing")


class ListingOptionsResponse(BaseModel):
    """Allowed values for listing form fields."""

    property_types: List[str]
    tenant_preferences: List[str]
