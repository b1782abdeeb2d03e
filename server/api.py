"""FastAPI server exposing the outfit engine for deployment."""

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from logic.validation import DispositionRequest, LockRequest, SaveOutfitRequest
from memory.session_store import UnknownSessionError
from wardrobe_app.app import OutfitEngineApp

STATUS_CODES = {
    "invalid_request": 400,
    "not_found": 404,
    "name_taken": 409,
    "combination_taken": 409,
    "error": 503,
}


class SessionRequest(BaseModel):
    """Request payload for starting a styling session."""

    user_id: str = Field(..., description="Unique user identifier")
    style: str = Field(..., description="Casual, Streetwear, Sandwich or Random")


def _respond(response: dict) -> dict:
    status_code = STATUS_CODES.get(response.get("status", ""))
    if status_code is not None:
        raise HTTPException(status_code=status_code, detail=response)
    return response


def create_app(engine: OutfitEngineApp | None = None) -> FastAPI:
    """Build the FastAPI instance around an engine; tests inject their own."""

    engine = engine or OutfitEngineApp()
    api = FastAPI(title="Outfit Engine", version="0.1.0")
    api.state.engine = engine

    @api.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "status": "invalid_request",
                "message": "Invalid request payload",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    def session_or_404(session_id: str):
        try:
            return engine.session(session_id)
        except UnknownSessionError:
            raise HTTPException(status_code=404, detail={"status": "not_found", "message": "Unknown session"})

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness check."""

        return {
            "status": "ok",
            "service": "outfit-engine",
            "environment": engine.config.environment or "local",
            "styles": [style["name"] for style in engine.styles()],
        }

    @api.post("/users/{user_id}/items")
    def add_item(user_id: str, payload: dict) -> dict:
        return _respond(engine.add_item(user_id, payload))

    @api.get("/users/{user_id}/wardrobe")
    def wardrobe_summary(user_id: str) -> dict:
        return _respond(engine.wardrobe_summary(user_id))

    @api.post("/sessions")
    def create_session(request: SessionRequest) -> dict:
        """Start a session and return its first outfit."""

        return _respond(engine.start_session(request.user_id, request.style))

    @api.post("/sessions/{session_id}/next")
    def next_outfit(session_id: str) -> dict:
        return _respond(session_or_404(session_id).next_outfit())

    @api.post("/sessions/{session_id}/reject")
    def reject_outfit(session_id: str) -> dict:
        return _respond(session_or_404(session_id).reject())

    @api.post("/sessions/{session_id}/lock")
    def toggle_lock(session_id: str, request: LockRequest) -> dict:
        return _respond(session_or_404(session_id).toggle_lock(request.slot))

    @api.post("/sessions/{session_id}/save")
    def save_outfit(session_id: str, request: SaveOutfitRequest) -> dict:
        return _respond(session_or_404(session_id).save(request.name))

    @api.post("/sessions/{session_id}/prompt")
    def resolve_prompt(session_id: str, request: DispositionRequest) -> dict:
        return _respond(session_or_404(session_id).resolve_prompt(request.choice))

    @api.post("/users/{user_id}/rejections/reset")
    def reset_rejections(user_id: str) -> dict:
        return _respond(engine.reset_rejections(user_id))

    @api.get("/users/{user_id}/outfits")
    def list_outfits(user_id: str, search: str | None = None) -> dict:
        return _respond(engine.list_saved(user_id, search=search))

    @api.delete("/users/{user_id}/outfits/{name}")
    def delete_outfit(user_id: str, name: str) -> dict:
        return _respond(engine.delete_saved(user_id, name))

    return api


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
