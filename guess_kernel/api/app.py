"""
Guess Kernel API — FastAPI endpoints.

Exposes the engine to a presentation layer:
- Catalog inspection
- Session lifecycle (create, ask, answer, guess, discard)
- Session diagnostics and trait priority debugging
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from guess_kernel.catalog.loader import load_bundled
from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import ConfigurationError, InvalidInputError, SessionStateError
from guess_kernel.models.catalog import Entity
from guess_kernel.models.config import GameConfig
from guess_kernel.session.controller import ENGINE_VERSION, GameSession
from guess_kernel.session.store import SessionStore


# --- Request/Response Models ---

class SessionCreateRequest(BaseModel):
    seed: Optional[int] = None
    max_questions: Optional[int] = Field(default=None, ge=1)


class AnswerRequest(BaseModel):
    confidence: float


# --- Application Factory ---

def create_app(
    entities: Optional[List[Entity]] = None,
    matrix: Optional[TraitMatrix] = None,
    catalog: Optional[TraitCatalog] = None,
    config: Optional[GameConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Guess Kernel API",
        description="Adaptive twenty-questions engine",
        version=ENGINE_VERSION,
    )

    if entities is None or matrix is None:
        bundled_entities, bundled_matrix = load_bundled()
        entities = entities if entities is not None else bundled_entities
        matrix = matrix if matrix is not None else bundled_matrix
    catalog = catalog or TraitCatalog.default()
    store = SessionStore(entities, matrix, catalog, config or GameConfig())

    app.state.session_store = store

    def _session(session_id: str) -> GameSession:
        session = store.get(session_id)
        if session is None:
            raise HTTPException(404, "Session not found")
        return session

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "engine_version": ENGINE_VERSION,
            "entities": len(store.entities),
            "traits": len(store.catalog),
            "active_sessions": store.count(),
        }

    # === CATALOG ===

    @app.get("/catalog/traits")
    def list_traits():
        """All askable trait definitions, in selection order."""
        return [
            {**d.model_dump(mode="json"), "question": d.question_text}
            for d in store.catalog
        ]

    @app.get("/catalog/entities")
    def list_entities():
        return [e.model_dump(mode="json") for e in store.entities]

    # === SESSIONS ===

    @app.post("/sessions")
    def create_session(req: Optional[SessionCreateRequest] = None):
        """Start a new game."""
        req = req or SessionCreateRequest()
        try:
            session = store.create(seed=req.seed, max_questions=req.max_questions)
        except ConfigurationError as e:
            raise HTTPException(422, str(e))
        return {
            "id": session.id,
            "state": session.state.value,
            "max_questions": session.config.max_questions,
        }

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str):
        """Diagnostic snapshot of a session."""
        return _session(session_id).diagnostics().model_dump(mode="json")

    @app.post("/sessions/{session_id}/question")
    def next_question(session_id: str):
        """The next question, or a terminated selection telling the client to guess."""
        session = _session(session_id)
        try:
            selection = session.next_question()
        except SessionStateError as e:
            raise HTTPException(409, str(e))
        return {
            **selection.model_dump(mode="json"),
            "terminated": selection.terminated,
            "question_number": session.questions_asked + (0 if selection.terminated else 1),
            "state": session.state.value,
        }

    @app.post("/sessions/{session_id}/answer")
    def answer(session_id: str, req: AnswerRequest):
        """Record the player's confidence for the pending question."""
        session = _session(session_id)
        try:
            session.answer(req.confidence)
        except InvalidInputError as e:
            raise HTTPException(422, str(e))
        except SessionStateError as e:
            raise HTTPException(409, str(e))
        return {
            "questions_asked": session.questions_asked,
            "state": session.state.value,
        }

    @app.post("/sessions/{session_id}/guess")
    def guess(session_id: str):
        """Commit to the final guess."""
        session = _session(session_id)
        try:
            result = session.guess()
        except SessionStateError as e:
            raise HTTPException(409, str(e))
        return result.model_dump(mode="json")

    @app.get("/sessions/{session_id}/traits/priorities")
    def trait_priorities(session_id: str, limit: int = Query(15, ge=1)):
        """Top unasked traits with their current diversity scores."""
        session = _session(session_id)
        return [p.model_dump(mode="json") for p in session.trait_priorities(limit)]

    @app.delete("/sessions/{session_id}")
    def delete_session(session_id: str):
        if not store.remove(session_id):
            raise HTTPException(404, "Session not found")
        return {"status": "discarded", "session_id": session_id}

    return app


# Default application instance
app = create_app()
