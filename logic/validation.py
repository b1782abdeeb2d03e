"""Pydantic schemas and helpers for validating engine requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.styles import get_style
from models.taxonomy import validate_category, validate_slot
from models.wardrobe_item import WardrobeItem


@dataclass(frozen=True)
class WardrobeCount:
    """Items per category, checked before any outfit is generated."""

    tops: int = 0
    bottoms: int = 0
    shoes: int = 0
    minimum: int = 3

    @property
    def has_minimum(self) -> bool:
        return self.tops >= self.minimum and self.bottoms >= self.minimum and self.shoes >= self.minimum

    @property
    def missing(self) -> Dict[str, int]:
        counts = {"top": self.tops, "bottom": self.bottoms, "shoes": self.shoes}
        return {slot: self.minimum - count for slot, count in counts.items() if count < self.minimum}


def count_wardrobe(items: Iterable[WardrobeItem], minimum: int = 3) -> WardrobeCount:
    counts = {"top": 0, "bottom": 0, "shoes": 0}
    for item in items:
        counts[item.category] += 1
    return WardrobeCount(tops=counts["top"], bottoms=counts["bottom"], shoes=counts["shoes"], minimum=minimum)


class RGBPayload(BaseModel):
    red: float = Field(ge=0, le=255)
    green: float = Field(ge=0, le=255)
    blue: float = Field(ge=0, le=255)


class WardrobeItemRequest(BaseModel):
    """Input contract for adding a classified garment to the wardrobe."""

    url: str = Field(min_length=1)
    category: str
    brand: str = ""
    size: str = ""
    rgb: RGBPayload

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: str) -> str:
        return validate_category(value)


class StartSessionRequest(BaseModel):
    user_id: str = Field(min_length=1)
    style: str = Field(min_length=1)

    @field_validator("style")
    @classmethod
    def _validate_style(cls, value: str) -> str:
        return get_style(value).name


class LockRequest(BaseModel):
    slot: str

    @field_validator("slot")
    @classmethod
    def _validate_slot(cls, value: str) -> str:
        return validate_slot(value)


class SaveOutfitRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name cannot be blank")
        return stripped


class DispositionRequest(BaseModel):
    choice: Literal["keep", "delete", "donate"]


class ValidationResult(BaseModel):
    """Wrapper returned to callers when validation fails."""

    status: Literal["invalid_request"] = "invalid_request"
    message: str
    details: List[Dict[str, Any]]


def validation_failure(message: str, exc: ValidationError) -> Dict[str, Any]:
    """Translate Pydantic errors into a consistent response payload."""

    return ValidationResult(message=message, details=exc.errors(include_context=False)).model_dump()


__all__ = [
    "WardrobeCount",
    "count_wardrobe",
    "RGBPayload",
    "WardrobeItemRequest",
    "StartSessionRequest",
    "LockRequest",
    "SaveOutfitRequest",
    "DispositionRequest",
    "ValidationResult",
    "validation_failure",
]
