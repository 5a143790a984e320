"""
Session Store — live game sessions of this process.

Sessions exist only in memory and are dropped when finished with; nothing is
kept across restarts. The store is bounded: once full, finished sessions are
evicted first, then the oldest ones.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import ConfigurationError
from guess_kernel.models.catalog import Entity
from guess_kernel.models.config import GameConfig
from guess_kernel.models.session import SessionState
from guess_kernel.selection.selector import unmatched_traits
from guess_kernel.session.controller import GameSession

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1000


class SessionStore:
    """Creates sessions over shared read-only data and tracks them by id."""

    def __init__(
        self,
        entities: Sequence[Entity],
        matrix: TraitMatrix,
        catalog: TraitCatalog,
        config: Optional[GameConfig] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.entities = list(entities)
        self.matrix = matrix
        self.catalog = catalog
        self.config = config or GameConfig()
        self.max_sessions = max_sessions
        self._sessions: Dict[str, GameSession] = {}

        missing = unmatched_traits(catalog, matrix)
        if missing:
            logger.warning(
                "%d catalog traits have no trait-matrix row and will never be asked: %s",
                len(missing), ", ".join(missing[:10]) + (" ..." if len(missing) > 10 else ""),
            )

    def create(
        self,
        seed: Optional[int] = None,
        max_questions: Optional[int] = None,
    ) -> GameSession:
        """
        Create and start a new session, optionally overriding seed and budget.

        Raises ConfigurationError when an override fails GameConfig validation.
        """
        updates = {}
        if seed is not None:
            updates["jitter_seed"] = seed
        if max_questions is not None:
            updates["max_questions"] = max_questions

        config = self.config
        if updates:
            try:
                config = GameConfig.model_validate({**self.config.model_dump(), **updates})
            except ValidationError as e:
                raise ConfigurationError(f"Invalid session overrides {updates}: {e}") from e

        self._make_room()
        session = GameSession(self.entities, self.matrix, self.catalog, config)
        session.start()
        self._sessions[session.id] = session
        return session

    def _make_room(self) -> None:
        excess = len(self._sessions) - self.max_sessions + 1
        if excess <= 0:
            return

        finished = [sid for sid, s in self._sessions.items() if s.state == SessionState.DONE]
        done = set(finished)
        others = [sid for sid in self._sessions if sid not in done]
        evicted = (finished + others)[:excess]
        for session_id in evicted:
            del self._sessions[session_id]
        logger.info("Session store full, evicted %d session(s)", len(evicted))

    def get(self, session_id: str) -> Optional[GameSession]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        """Discard a session."""
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.debug("Session %s discarded", session_id)
            return True
        return False

    def list_ids(self) -> List[str]:
        return list(self._sessions)

    def count(self) -> int:
        return len(self._sessions)
