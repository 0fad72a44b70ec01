"""Feedback hook: save/skip a Signal."""

from fastapi import APIRouter, Depends, HTTPException

from ...engine import RelevanceEngine
from ...errors import DataConsistencyError, SignalNotFoundError
from ..schemas import ActionRequest, ActionResponse, ProfileSummary
from .deps import get_engine

router = APIRouter()


@router.post("/{signal_id}/action", response_model=ActionResponse)
def record_action(
    signal_id: str,
    request: ActionRequest,
    engine: RelevanceEngine = Depends(get_engine),
):
    """
    Record a save/skip. 404 when the Signal is unknown, 409 when it was already actioned.
    """
    try:
        profile = engine.record_feedback(signal_id, request.action)
    except SignalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DataConsistencyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ActionResponse(
        signal=engine.signals.get(signal_id),
        profile=ProfileSummary.from_profile(profile, engine.config.cold_start_threshold),
    )
