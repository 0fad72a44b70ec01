"""Root and health endpoint."""

from fastapi import APIRouter, Depends, Request

from ...engine import RelevanceEngine
from ...judges.client import get_available_providers
from .deps import get_engine

router = APIRouter()


@router.get("/")
def root(request: Request, engine: RelevanceEngine = Depends(get_engine)):
    judge = engine.orchestrator.judge
    return {
        "name": "Relevance Engine API",
        "version": request.app.version,
        "status": "ok",
        "judge": {
            "configured": judge is not None,
            "provider": judge.provider if judge is not None else None,
            "available_providers": get_available_providers(),
        },
        "retry_queue": len(engine.retry_queue),
        "endpoints": {
            "runs": ["/api/users/{user_id}/runs"],
            "signals": ["/api/users/{user_id}/signals", "/api/signals/{signal_id}/action"],
            "profile": ["/api/users/{user_id}/profile"],
        },
    }
