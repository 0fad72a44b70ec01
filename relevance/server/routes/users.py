"""Per-user endpoints: trigger a scoring run, list Signals, read the profile summary."""

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ...engine import RelevanceEngine, RunSummary
from ...models.signal import SignalState
from ..schemas import ProfileSummary, RunRequest, SignalList
from .deps import get_engine

router = APIRouter()


@router.post("/{user_id}/runs", response_model=RunSummary)
async def trigger_run(
    user_id: str,
    request: Optional[RunRequest] = Body(default=None),
    engine: RelevanceEngine = Depends(get_engine),
):
    """Score new chunks for the user and persist Signals up to the remaining daily budget."""
    request = request or RunRequest()
    return await engine.generate_signals(user_id, since=request.since, budget=request.budget)


@router.get("/{user_id}/signals", response_model=SignalList)
def list_signals(
    user_id: str,
    state: Optional[SignalState] = None,
    engine: RelevanceEngine = Depends(get_engine),
):
    return SignalList(user_id=user_id, signals=engine.signals.list_for_user(user_id, state))


@router.get("/{user_id}/profile", response_model=ProfileSummary)
def get_profile(user_id: str, engine: RelevanceEngine = Depends(get_engine)):
    return ProfileSummary.from_profile(engine.profile_for(user_id), engine.config.cold_start_threshold)
