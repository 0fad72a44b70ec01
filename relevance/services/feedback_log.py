"""
Feedback Log abstraction: the append-only UserFeedbackEvent store.

Implementations: in-memory (tests, single process) and JSON-lines file
(one event per line, appended, never rewritten).
"""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import List, Optional, Protocol, Union

from ..models.feedback import UserFeedbackEvent

logger = logging.getLogger(__name__)


class FeedbackLog(Protocol):
    """Protocol for the feedback event log."""

    def append(self, event: UserFeedbackEvent) -> None:
        ...

    def events_for_user(self, user_id: str) -> List[UserFeedbackEvent]:
        """All events for user_id in append order."""
        ...


class InMemoryFeedbackLog:
    def __init__(self):
        self._events: List[UserFeedbackEvent] = []
        self._lock = Lock()

    def append(self, event: UserFeedbackEvent) -> None:
        with self._lock:
            self._events.append(event)

    def events_for_user(self, user_id: str) -> List[UserFeedbackEvent]:
        with self._lock:
            return [e for e in self._events if e.user_id == user_id]

    def __len__(self) -> int:
        return len(self._events)


class JsonlFeedbackLog:
    """
    Feedback log persisted as JSON lines at `path`.

    Malformed lines are logged and skipped on read so one bad write cannot
    hide the rest of a user's history.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    def append(self, event: UserFeedbackEvent) -> None:
        line = event.model_dump_json()
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def _read_all(self) -> List[UserFeedbackEvent]:
        if not self.path.exists():
            return []
        events = []
        with open(self.path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(UserFeedbackEvent.model_validate(json.loads(line)))
                except ValueError as e:
                    logger.warning(
                        "[feedback_log] MALFORMED_LINE path=%s line=%s error=%s", self.path, lineno, e
                    )
        return events

    def events_for_user(self, user_id: str) -> List[UserFeedbackEvent]:
        with self._lock:
            return [e for e in self._read_all() if e.user_id == user_id]


def open_feedback_log(data_dir: Optional[Union[str, Path]]) -> Union[InMemoryFeedbackLog, JsonlFeedbackLog]:
    """JSONL log under data_dir when set, otherwise in-memory."""
    if data_dir:
        return JsonlFeedbackLog(Path(data_dir) / "feedback_events.jsonl")
    return InMemoryFeedbackLog()
