"""Session models — candidates, question selections, guesses and diagnostics."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    IDLE = "idle"
    ASKING = "asking"
    GUESSING = "guessing"
    DONE = "done"


class StopReason(str, Enum):
    """Why the question loop stopped asking."""
    READY_TO_GUESS = "ready_to_guess"               # At most one viable candidate left
    NO_INFORMATIVE_TRAIT = "no_informative_trait"   # Nothing unasked scores above zero
    MAX_QUESTIONS = "max_questions"                 # Question budget spent


class Candidate(BaseModel):
    """An entity paired with the engine's belief that it is the target."""

    entity_id: str
    confidence: float = Field(ge=0, le=1)


class QuestionSelection(BaseModel):
    """
    Output of the question selector.

    Either carries the trait to ask next, or `trait is None` together with a
    stop reason telling the session to move on to guessing.
    """

    trait: Optional[str] = None
    question: Optional[str] = None
    score: float = 0.0
    information_gain: float = 0.0
    candidate_count: int = 0
    stop_reason: Optional[StopReason] = None

    @property
    def terminated(self) -> bool:
        return self.trait is None


class TraitPriority(BaseModel):
    """One row of the trait priority debug listing."""

    trait: str
    category: str
    priority: float
    diversity: float


class GuessResult(BaseModel):
    """The final guess of a completed session."""

    entity_id: str
    display_name: str
    confidence: float = Field(ge=0.05, le=0.95)
    questions_asked: int
    stop_reason: Optional[StopReason] = None
    top_candidates: List[Candidate] = []


class CategoryUsage(BaseModel):
    count: int = 0
    quota: Optional[int] = None             # None = unbounded


class SessionDiagnostics(BaseModel):
    """Read-only snapshot of a session, for observability only."""

    session_id: str
    state: SessionState
    questions_asked: int
    max_questions: int
    categories: Dict[str, CategoryUsage] = {}
    total_information_gain: float = 0.0
    average_information_gain: float = 0.0
    top_candidates: List[Candidate] = []
    pending_trait: Optional[str] = None
    engine_version: str
