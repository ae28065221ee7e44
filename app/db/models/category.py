"""
Category model - taxonomy referenced (by slug, as free text) from listings.
"""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Category(TimestampMixin, Base):
    """Slug is the natural key; the unique index is the final word on duplicates."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(512), nullable=True)
    subcategories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug={self.slug})>"
