"""
Listing model - the marketplace's main entity (search, geo filter, owner-gated edits).
"""

from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.db.models.user import User


class Listing(TimestampMixin, Base):
    """A product offered by its owner. Coordinates are both set or both null."""

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        CheckConstraint("quantity >= 1", name="ck_listings_quantity_positive"),
        CheckConstraint(
            "(longitude IS NULL) = (latitude IS NULL)", name="ck_listings_coordinates_pair"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    subcategory: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    main_image: Mapped[str] = mapped_column(String(1024), nullable=False)
    additional_images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)

    owner: Mapped["User"] = relationship("User", back_populates="listings", lazy="raise")

    @property
    def coordinates(self) -> dict | None:
        """GeoJSON point, [lng, lat] order."""
        if self.longitude is None or self.latitude is None:
            return None
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title})>"
