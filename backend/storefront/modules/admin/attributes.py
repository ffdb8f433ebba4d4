"""
Attribute Service - Catalog lookup tables.

Categories, brands, colors, materials, sizes and tags share one
lifecycle: create with a unique name, list active, partial update,
soft delete.
"""

from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.models import Brand, Category, Color, Material, Size, Tag

ATTRIBUTE_MODELS: dict[str, type] = {
    "categories": Category,
    "brands": Brand,
    "colors": Color,
    "materials": Material,
    "sizes": Size,
    "tags": Tag,
}

# Columns a client may set besides name and is_active
ATTRIBUTE_FIELDS: dict[str, tuple[str, ...]] = {
    "categories": ("description",),
    "brands": ("description",),
    "colors": ("hex_code",),
    "materials": ("description",),
    "sizes": ("type", "description"),
    "tags": ("type",),
}

LABELS = {
    "categories": "Category",
    "brands": "Brand",
    "colors": "Color",
    "materials": "Material",
    "sizes": "Size",
    "tags": "Tag",
}


class AttributeService:
    """
    CRUD for one kind of catalog attribute.

    Usage:
        colors = AttributeService(db_session, "colors")
        red = await colors.create({"name": "Red", "hex_code": "#FF0000"})
    """

    def __init__(self, db: AsyncSession, kind: str) -> None:
        if kind not in ATTRIBUTE_MODELS:
            raise NotFoundError(f"Unknown attribute type: {kind}")
        self.db = db
        self.kind = kind
        self.model = ATTRIBUTE_MODELS[kind]
        self.label = LABELS[kind]

    async def list_all(self, active_only: bool = True, type_: str | None = None) -> list[Any]:
        query = select(self.model).order_by(self.model.name)
        if active_only:
            query = query.where(self.model.is_active == True)
        if type_ is not None and hasattr(self.model, "type"):
            query = query.where(self.model.type == type_)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, attribute_id: int) -> Any:
        attribute = await self.db.get(self.model, attribute_id)
        if not attribute:
            raise NotFoundError(f"{self.label} not found")
        return attribute

    async def _ensure_unique(
        self, name: str, type_: str | None = None, exclude_id: int | None = None
    ) -> None:
        query = select(self.model.id).where(self.model.name == name)
        if self.model is Size:
            query = query.where(Size.type == type_)
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        if (await self.db.execute(query)).first():
            raise BadRequestError(f"{self.label} already exists")

    def _clean_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        cleaned = {}
        for key in ATTRIBUTE_FIELDS[self.kind]:
            if key in fields:
                value = fields[key]
                cleaned[key] = value.strip() if isinstance(value, str) else value
        return cleaned

    async def create(self, fields: dict[str, Any]) -> Any:
        """
        Create an attribute.

        Raises:
            BadRequestError: Name (or size type) missing, or duplicate
        """
        name = (fields.get("name") or "").strip()
        if not name:
            raise BadRequestError(f"{self.label} name is required")

        extra = self._clean_fields(fields)
        if self.model is Size and not extra.get("type"):
            raise BadRequestError("Size type is required")

        await self._ensure_unique(name, extra.get("type"))

        attribute = self.model(name=name, is_active=True, **extra)
        self.db.add(attribute)
        await self.db.flush()
        logger.info(f"Created {self.label.lower()} {attribute.id}: {name}")
        return attribute

    async def update(self, attribute_id: int, fields: dict[str, Any]) -> Any:
        """Partial update, including reactivation through is_active."""
        attribute = await self.get(attribute_id)
        extra = self._clean_fields(fields)

        name = fields.get("name")
        if name is not None:
            name = name.strip()
            if not name:
                raise BadRequestError(f"{self.label} name cannot be empty")
        if self.model is Size and "type" in extra and not extra["type"]:
            raise BadRequestError("Size type is required")

        new_name = name or attribute.name
        new_type = extra.get("type", getattr(attribute, "type", None))
        if new_name != attribute.name or (
            self.model is Size and new_type != attribute.type
        ):
            await self._ensure_unique(new_name, new_type, exclude_id=attribute.id)

        attribute.name = new_name
        for key, value in extra.items():
            setattr(attribute, key, value)
        if fields.get("is_active") is not None:
            attribute.is_active = fields["is_active"]

        await self.db.flush()
        return attribute

    async def deactivate(self, attribute_id: int) -> Any:
        """Soft delete: the row stays for existing products."""
        attribute = await self.get(attribute_id)
        attribute.is_active = False
        await self.db.flush()
        logger.info(f"Deactivated {self.label.lower()} {attribute_id}")
        return attribute
