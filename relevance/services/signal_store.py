"""
Signal Store: persisted, user-visible Signals.

Enforces the uniqueness invariant: at most one Signal per (user_id, chunk_id),
ever. Every write is atomic under the store lock, so a partially completed run
leaves only whole Signals behind.
"""

import logging
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional, Protocol, Set, Tuple

from ..errors import DataConsistencyError, SignalNotFoundError
from ..models.feedback import FeedbackAction
from ..models.scoring import Provenance
from ..models.signal import Signal, SignalState
from ..utils.timestamps import to_utc, utc_now

logger = logging.getLogger(__name__)


class SignalStore(Protocol):
    def insert(self, signal: Signal) -> Signal:
        """Raises DataConsistencyError when (user_id, chunk_id) already has a Signal."""
        ...

    def get(self, signal_id: str) -> Signal:
        ...

    def list_for_user(self, user_id: str, state: Optional[SignalState] = None) -> List[Signal]:
        ...

    def signaled_chunk_ids(self, user_id: str) -> Set[str]:
        ...

    def mark_action(self, signal_id: str, action: FeedbackAction, at: Optional[datetime] = None) -> Signal:
        ...

    def update_score(self, user_id: str, chunk_id: str, score: float, provenance: Provenance) -> bool:
        ...

    def expire_pending(self, older_than: datetime) -> int:
        ...

    def count_created_since(self, user_id: str, since: datetime) -> int:
        ...


class InMemorySignalStore:
    def __init__(self):
        self._signals: Dict[str, Signal] = {}
        self._by_pair: Dict[Tuple[str, str], str] = {}
        self._lock = Lock()

    def insert(self, signal: Signal) -> Signal:
        key = (signal.user_id, signal.chunk_id)
        with self._lock:
            if key in self._by_pair:
                raise DataConsistencyError(
                    f"Signal already exists for user {signal.user_id} and chunk {signal.chunk_id}"
                )
            self._signals[signal.id] = signal
            self._by_pair[key] = signal.id
        return signal

    def get(self, signal_id: str) -> Signal:
        signal = self._signals.get(signal_id)
        if signal is None:
            raise SignalNotFoundError(f"Signal not found: {signal_id}")
        return signal

    def find(self, user_id: str, chunk_id: str) -> Optional[Signal]:
        signal_id = self._by_pair.get((user_id, chunk_id))
        return self._signals.get(signal_id) if signal_id else None

    def list_for_user(self, user_id: str, state: Optional[SignalState] = None) -> List[Signal]:
        with self._lock:
            signals = [s for s in self._signals.values() if s.user_id == user_id]
        if state is not None:
            signals = [s for s in signals if s.state == state]
        return sorted(signals, key=lambda s: s.relevance_score, reverse=True)

    def signaled_chunk_ids(self, user_id: str) -> Set[str]:
        with self._lock:
            return {chunk_id for (uid, chunk_id) in self._by_pair if uid == user_id}

    def mark_action(self, signal_id: str, action: FeedbackAction, at: Optional[datetime] = None) -> Signal:
        """
        Move a pending Signal to saved/skipped.

        Raises:
            SignalNotFoundError: unknown signal_id
            DataConsistencyError: the Signal is already terminal
        """
        with self._lock:
            signal = self._signals.get(signal_id)
            if signal is None:
                raise SignalNotFoundError(f"Signal not found: {signal_id}")
            if signal.is_terminal:
                raise DataConsistencyError(
                    f"Signal {signal_id} already {signal.state.value}; cannot mark {action.value}"
                )
            updated = signal.model_copy(update={
                "state": SignalState.from_action(action),
                "actioned_at": to_utc(at) if at is not None else utc_now(),
            })
            self._signals[signal_id] = updated
        return updated

    def update_score(self, user_id: str, chunk_id: str, score: float, provenance: Provenance) -> bool:
        """Re-score a still-pending Signal in place. Returns False when absent or terminal."""
        with self._lock:
            signal_id = self._by_pair.get((user_id, chunk_id))
            signal = self._signals.get(signal_id) if signal_id else None
            if signal is None or signal.is_terminal:
                return False
            self._signals[signal_id] = signal.model_copy(
                update={"relevance_score": score, "provenance": provenance}
            )
        return True

    def expire_pending(self, older_than: datetime) -> int:
        """
        Remove pending Signals created before older_than. Terminal Signals are kept.

        The (user, chunk) pair stays reserved so an expired chunk is never re-signaled.
        older_than = to_utc(older_than)
        """
        with self._lock:
            expired = [
                sid for sid, s in self._signals.items()
                if not s.is_terminal and s.created_at < older_than
            ]
            for sid in expired:
                del self._signals[sid]
        if expired:
            logger.info("[signals] PENDING_EXPIRED count=%s older_than=%s", len(expired), older_than.isoformat())
        return len(expired)

    def count_created_since(self, user_id: str, since: datetime) -> int:
        since = to_utc(since)
        with self._lock:
            return sum(1 for s in self._signals.values() if s.user_id == user_id and s.created_at >= since)
