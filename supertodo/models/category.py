"""Category data model for supertodo."""

from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field

from supertodo.errors import ValidationError
from supertodo.models.constants import (
    CATEGORY_DESCRIPTION_MAX_LENGTH,
    CATEGORY_NAME_MAX_LENGTH,
    DEFAULT_CATEGORIES,
)
from supertodo.models.factory import IdFactory, new_id


def validate_category(data: Mapping[str, Any]) -> None:
    """Validate raw category fields without constructing a Category.

    Raises:
        ValidationError: With the message of the first violated rule
    """
    name = data.get("name")
    if not name or not isinstance(name, str):
        raise ValidationError("Category name is required")
    trimmed_name = name.strip()
    if not trimmed_name:
        raise ValidationError("Category name cannot be empty")
    if len(trimmed_name) > CATEGORY_NAME_MAX_LENGTH:
        raise ValidationError(f"Category name must be between 1 and {CATEGORY_NAME_MAX_LENGTH} characters")

    description = data.get("description")
    if description is not None:
        if not isinstance(description, str):
            raise ValidationError("Category description must be text")
        if len(description.strip()) > CATEGORY_DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"Category description must be {CATEGORY_DESCRIPTION_MAX_LENGTH} characters or less"
            )

    category_id = data.get("id")
    if category_id is not None and not isinstance(category_id, str):
        raise ValidationError("Category id must be a string")


def name_key(name: str) -> str:
    """Comparison key for case-insensitive category name uniqueness."""
    return name.strip().casefold()


class Category(BaseModel):
    """Canonical Category model."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique category identifier")
    name: str = Field(..., max_length=CATEGORY_NAME_MAX_LENGTH, description="Trimmed, case-insensitively unique name")
    description: str = Field("", max_length=CATEGORY_DESCRIPTION_MAX_LENGTH, description="Trimmed description")

    @classmethod
    def create(cls, data: Mapping[str, Any], *, id_factory: IdFactory = new_id) -> "Category":
        """Validate raw fields and build a normalized Category.

        Raises:
            ValidationError: If any field violates its rule
        """
        validate_category(data)
        return cls(
            id=data.get("id") or id_factory(),
            name=data["name"].strip(),
            description=(data.get("description") or "").strip(),
        )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


def default_categories(id_factory: IdFactory = new_id) -> List[Category]:
    """Build the categories seeded on first access."""
    return [
        Category.create({"name": name, "description": description}, id_factory=id_factory)
        for name, description in DEFAULT_CATEGORIES
    ]
