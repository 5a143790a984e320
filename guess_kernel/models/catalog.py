"""Catalog models — entities and the trait definitions asked about them."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TraitCategory(str, Enum):
    """Question categories. All but OTHER are subject to a per-session quota."""
    TYPE = "type"
    HABITAT = "habitat"
    COLOR = "color"
    STAT = "stat"
    PHYSICAL = "physical"
    OTHER = "other"


class TraitDefinition(BaseModel):
    """Static reference data for one askable trait."""

    model_config = ConfigDict(frozen=True)

    key: str                                # e.g., "type_fire"
    category: TraitCategory = TraitCategory.OTHER
    priority: float = 1.0                   # Human-recognizability / discriminative value
    reliability: float = Field(ge=0, default=1.0)   # Weight in confidence blending
    question: Optional[str] = None

    @property
    def question_text(self) -> str:
        return self.question or f"Does it have the trait: {self.key}?"


class Entity(BaseModel):
    """A guessable entity. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str                                 # Matrix key, e.g., "pikachu"
    display_name: str
    number: Optional[int] = None            # Catalog index, e.g., Pokédex number
    types: List[str] = []
    stats: Dict[str, float] = {}
