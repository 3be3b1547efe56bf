from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


DIETARY_OPTIONS = [
    "Vegetarian",
    "Vegan",
    "Gluten-Free",
    "Dairy-Free",
    "Nut-Free",
    "Low-Carb",
    "Keto",
    "Paleo",
]

CUISINE_OPTIONS = [
    "American",
    "Italian",
    "Mexican",
    "Asian",
    "Indian",
    "Mediterranean",
    "French",
    "Thai",
    "Chinese",
    "Other",
]

COMMON_UNITS = [
    "cup",
    "tablespoon",
    "teaspoon",
    "ounce",
    "pound",
    "gram",
    "kilogram",
    "liter",
    "milliliter",
    "piece",
    "clove",
    "pinch",
]


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


def _strip_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class IngredientItem(BaseModel):
    """One ingredient line as submitted from a form."""

    name: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("name", "unit", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, v: Any) -> Any:
        return _strip_optional(v) if isinstance(v, str) else v


class RecipeForm(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    instructions: str = Field(..., min_length=1)
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    servings: Optional[int] = Field(4, gt=0)
    difficulty: Optional[Difficulty] = None
    cuisine_type: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    is_public: bool = False
    ingredients: List[IngredientItem] = Field(default_factory=list)

    @field_validator("title", "instructions", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", "cuisine_type", "image_url", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        return _strip_optional(v) if isinstance(v, str) else v

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def _dedupe_tags(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple, set)):
            seen: List[str] = []
            for tag in v:
                tag = str(tag).strip()
                if tag and tag not in seen:
                    seen.append(tag)
            return seen
        return v

    def recipe_fields(self) -> Dict[str, Any]:
        """Column values for the recipes table (everything but ingredients)."""
        return self.model_dump(mode="json", exclude={"ingredients"})


class Ingredient(BaseModel):
    id: str
    recipe_id: str
    name: str
    amount: float
    unit: str
    notes: Optional[str] = None
    order_index: int = Field(..., ge=0)


class Recipe(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    instructions: str
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    cuisine_type: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    is_public: bool = False
    ingredients: List[Ingredient] = Field(default_factory=list)

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def _null_tags(cls, v: Any) -> Any:
        return [] if v is None else v


class FilterCriteria(BaseModel):
    """Attribute filters; a field left unset is not filtered on."""

    difficulty: Optional[Difficulty] = None
    cuisine_type: Optional[str] = None
    dietary_restrictions: Optional[List[str]] = None

    @field_validator("cuisine_type", mode="before")
    @classmethod
    def _blank_cuisine(cls, v: Any) -> Any:
        return _strip_optional(v) if isinstance(v, str) else v

    @field_validator("difficulty", mode="before")
    @classmethod
    def _blank_difficulty(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def _empty_tags(cls, v: Any) -> Any:
        if v is None:
            return None
        tags = [str(t).strip() for t in v if str(t).strip()]
        return tags or None

    def is_active(self) -> bool:
        return bool(self.difficulty or self.cuisine_type or self.dietary_restrictions)

    @classmethod
    def coerce(cls, value: "FilterCriteria | Dict[str, Any] | None") -> "FilterCriteria":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls.model_validate(value)
