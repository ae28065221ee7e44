"""
Category service - batch ingest with per-item outcomes, plus update/delete by id.
Challenge: One bad or duplicate descriptor must never sink the rest of the batch.
Design: Every descriptor is attempted concurrently on its own session and commits on its own.
The slug pre-check is only an early exit; the unique index decides races between attempts.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.models.category import Category
from app.db.repositories.category_repository import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.schemas.common import describe_errors

logger = logging.getLogger(__name__)

MISSING_NAME_OR_SLUG = "Missing name or slug."


def already_exists(slug: str) -> str:
    return f'Category with slug "{slug}" already exists.'


@dataclass
class IngestResult:
    created: list[Category] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class _Outcome:
    category: Category | None = None
    failure: dict[str, Any] | None = None


def _failed(data: Any, reason: str) -> _Outcome:
    return _Outcome(failure={"category_data": data, "reason": reason})


class CategoryIngestor:
    """Partial-success batch creation of categories."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def ingest(self, descriptors: Any) -> IngestResult:
        if not isinstance(descriptors, list) or not descriptors:
            raise ValidationError("Request body must be a non-empty array of categories.")

        outcomes = await asyncio.gather(*(self._attempt(d) for d in descriptors))

        result = IngestResult()
        for outcome in outcomes:
            if outcome.category is not None:
                result.created.append(outcome.category)
            else:
                result.failed.append(outcome.failure)
        logger.info("Category batch: %d created, %d failed", len(result.created), len(result.failed))
        return result

    async def _attempt(self, data: Any) -> _Outcome:
        if not isinstance(data, dict) or not data.get("name") or not data.get("slug"):
            return _failed(data, MISSING_NAME_OR_SLUG)
        try:
            descriptor = CategoryCreate.model_validate(data)
        except PydanticValidationError as exc:
            return _failed(data, f"Invalid category: {describe_errors(exc)}")

        slug = descriptor.slug
        try:
            async with self.session_factory() as session:
                repo = CategoryRepository(session)
                if await repo.get_by_slug(slug) is not None:
                    return _failed(data, already_exists(slug))
                category = await repo.add(
                    Category(
                        name=descriptor.name,
                        slug=slug,
                        icon=descriptor.icon or None,
                        subcategories=descriptor.subcategories,
                    )
                )
                await session.commit()
        except IntegrityError:
            # A concurrent insert won the slug between our check and our write
            logger.warning("Slug %r lost a concurrent create", slug, extra={"slug": slug})
            return _failed(data, already_exists(slug))
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Create category error for slug %r: %s", slug, exc, extra={"slug": slug})
            return _failed(data, f"Database error: {exc}")

        logger.info("Created category: %s", slug, extra={"slug": slug})
        return _Outcome(category=category)


class CategoryService:
    """Single-category operations on the request session."""

    def __init__(self, repo: CategoryRepository):
        self.repo = repo

    async def list_categories(self) -> list[Category]:
        return await self.repo.get_all()

    async def update(self, category_id: int, data: CategoryUpdate) -> Category:
        changes = data.model_dump(exclude_unset=True)
        for name in ("name", "slug"):
            if name in changes and changes[name] is None:
                raise ValidationError(f"{name} cannot be null")
        if "subcategories" in changes and changes["subcategories"] is None:
            changes["subcategories"] = []

        slug = changes.get("slug")
        if slug is not None and await self.repo.slug_taken_by_other(slug, category_id):
            raise ConflictError(f"Category with slug {slug} already exists")

        category = await self.repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("Category")
        for name, value in changes.items():
            setattr(category, name, value)
        try:
            category = await self.repo.save(category)
        except IntegrityError as exc:
            raise ConflictError(f"Category with slug {slug} already exists") from exc
        logger.info("Updated category: %s", category_id)
        return category

    async def delete(self, category_id: int) -> None:
        category = await self.repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("Category")
        await self.repo.delete(category)
        logger.info("Deleted category: %s", category_id)
