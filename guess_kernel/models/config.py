"""Game configuration."""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator

from guess_kernel.models.catalog import TraitCategory


DEFAULT_QUOTAS: Dict[TraitCategory, int] = {
    TraitCategory.TYPE: 3,
    TraitCategory.HABITAT: 2,
    TraitCategory.COLOR: 2,
    TraitCategory.STAT: 4,
    TraitCategory.PHYSICAL: 3,
}


class GameConfig(BaseModel):
    """Configuration for a guessing session."""

    max_questions: int = Field(ge=1, default=25)
    quotas: Dict[TraitCategory, int] = dict(DEFAULT_QUOTAS)
    tie_epsilon: float = Field(ge=0, default=0.003)
    early_game_fraction: float = Field(ge=0, le=1, default=0.3)
    late_game_fraction: float = Field(ge=0, le=1, default=0.7)
    jitter_seed: Optional[int] = None       # None = seed drawn per session
    top_n: int = Field(ge=1, default=10)    # Candidates reported in diagnostics

    @model_validator(mode="after")
    def _check_quotas(self) -> "GameConfig":
        if TraitCategory.OTHER in self.quotas:
            raise ValueError("the 'other' category cannot carry a quota")
        if any(q < 0 for q in self.quotas.values()):
            raise ValueError("quotas must be non-negative")
        if self.early_game_fraction > self.late_game_fraction:
            raise ValueError("early_game_fraction must not exceed late_game_fraction")
        return self

    def quota_for(self, category: TraitCategory) -> Optional[int]:
        """Quota for a category, or None when the category is unbounded."""
        return self.quotas.get(category)
