"""Guess Kernel data models."""

from guess_kernel.models.catalog import Entity, TraitCategory, TraitDefinition
from guess_kernel.models.config import DEFAULT_QUOTAS, GameConfig
from guess_kernel.models.session import (
    Candidate,
    CategoryUsage,
    GuessResult,
    QuestionSelection,
    SessionDiagnostics,
    SessionState,
    StopReason,
    TraitPriority,
)

__all__ = [
    "Candidate",
    "CategoryUsage",
    "DEFAULT_QUOTAS",
    "Entity",
    "GameConfig",
    "GuessResult",
    "QuestionSelection",
    "SessionDiagnostics",
    "SessionState",
    "StopReason",
    "TraitCategory",
    "TraitDefinition",
    "TraitPriority",
]
