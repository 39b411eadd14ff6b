"""
Listing model for rooms offered for rent.
Handles listing data with location, rent, tenant preference and image URLs.
"""

from sqlalchemy import String, Text, Numeric, JSON, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from roomfinder.database import Base
from decimal import Decimal
from urllib.parse import urlparse
import enum
import re
import uuid
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from roomfinder.models.user import User

CONTACT_NUMBER_PATTERN = re.compile(r"^[0-9]{10}$")


class PropertyType(str, enum.Enum):
    """Kind of accommodation offered by a listing."""
    ONE_BHK = "1BHK"
    TWO_BHK = "2BHK"
    THREE_BHK = "3BHK"
    FOUR_BHK = "4BHK"
    PG = "PG"
    HOSTEL = "Hostel"
    INDEPENDENT_HOUSE = "Independent House"


class TenantPreference(str, enum.Enum):
    """Kind of tenant the owner is looking for."""
    FAMILY = "Family"
    BACHELORS = "Bachelors"
    GIRLS = "Girls"
    WORKING_PROFESSIONAL = "Working Professional"
    STUDENTS = "Students"


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def is_image_url(value: str) -> bool:
    """Check that a value is an absolute http(s) URL."""
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class Listing(Base):
    """
    Room listing owned by a single user.
    Images are stored as an ordered list of public URLs; list order is display order.
    """

    __tablename__ = "listings"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Free-text description of the room"
    )

    location: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Free-text location, searched case-insensitively"
    )

    rent: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Monthly rent"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        nullable=False,
        index=True
    )

    tenant_preference: Mapped[TenantPreference] = mapped_column(
        SQLEnum(TenantPreference, name="tenant_preference", values_callable=_enum_values),
        nullable=False
    )

    contact_number: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="Ten digit contact phone number"
    )

    images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered list of public image URLs"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who posted this listing"
    )

    owner: Mapped["User"] = relationship(
        "User",
        back_populates="listings",
        lazy="noload"
    )

    def __repr__(self) -> str:
        """String representation of the listing."""
        return f"<Listing(id={self.id}, title={self.title[:30]}, rent={self.rent})>"

    def validate_text_fields(self) -> None:
        """
        Validate that required text fields are present.

        Raises:
            ValueError: If a required field is blank
        """
        for field in ("title", "description", "location"):
            value = getattr(self, field)
            if value is None or not str(value).strip():
                raise ValueError(f"{field.capitalize()} cannot be empty")

    def validate_rent(self) -> None:
        """
        Validate listing rent.

        Raises:
            ValueError: If rent is negative
        """
        if self.rent is None or Decimal(self.rent) < 0:
            raise ValueError("Rent must be zero or greater")

    def validate_contact_number(self) -> None:
        """
        Validate contact number.

        Raises:
            ValueError: If the number is not exactly ten digits
        """
        if not self.contact_number or not CONTACT_NUMBER_PATTERN.match(self.contact_number):
            raise ValueError("Contact number must be exactly 10 digits")

    def validate_images(self) -> None:
        """
        Validate image URLs.

        Raises:
            ValueError: If any image entry is not an http(s) URL
        """
        for url in self.images or []:
            if not isinstance(url, str) or not is_image_url(url):
                raise ValueError(f"Invalid image URL: {url!r}")

    def validate_all(self) -> None:
        """
        Run all validation checks on the listing.

        Raises:
            ValueError: If any validation fails
        """
        self.validate_text_fields()
        self.validate_rent()
        self.validate_contact_number()
        self.validate_images()
        PropertyType(self.property_type)
        TenantPreference(self.tenant_preference)

    def to_dict(self) -> dict:
        """
        Convert listing to dictionary.

        Returns:
            Dictionary representation of listing
        """
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "rent": float(self.rent),
            "property_type": PropertyType(self.property_type).value,
            "tenant_preference": TenantPreference(self.tenant_preference).value,
            "contact_number": self.contact_number,
            "images": list(self.images or []),
            "owner_id": str(self.owner_id),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# Owner's listings page and the home feed both read newest first
owner_created_index = Index(
    "idx_listings_owner_created",
    Listing.owner_id,
    Listing.created_at.desc()
)
