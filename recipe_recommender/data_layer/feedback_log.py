"""Append-only feedback log stored as JSON.

Expected file shape::

    {
      "events": [
        {"event_id": "e1", "member_id": "alice", "kind": "rating",
         "recipe_id": "r1", "timestamp": "2026-03-01T18:30:00Z",
         "payload": {"rating": 5}}
      ]
    }

Entries without an id, member or valid timestamp cannot be ordered or
attributed, so they are dropped here with a warning. Payload and kind
problems are left for the preference learner to report.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from recipe_recommender.data_layer.exceptions import FeedbackLoadError
from recipe_recommender.data_layer.models import FeedbackEvent, parse_timestamp
from recipe_recommender.providers.interfaces import FeedbackSource

logger = logging.getLogger(__name__)


def event_from_dict(data: Dict[str, Any]) -> FeedbackEvent:
    """Build a FeedbackEvent from a plain mapping.

    Raises:
        KeyError: If event_id, member_id or timestamp is missing
        ValueError: If the timestamp cannot be parsed
    """
    recipe_id = data.get("recipe_id")
    return FeedbackEvent(
        event_id=str(data["event_id"]),
        member_id=str(data["member_id"]),
        kind=str(data.get("kind", "")),
        timestamp=parse_timestamp(data["timestamp"]),
        recipe_id=str(recipe_id) if recipe_id is not None else None,
        payload=dict(data.get("payload") or {}),
    )


class FeedbackLog(FeedbackSource):
    """Feedback source backed by a JSON file, fully loaded on construction."""

    def __init__(self, json_path: str):
        """Initialize the feedback log.

        Args:
            json_path: Path to the JSON feedback file. A missing file is an
                empty log.

        Raises:
            FeedbackLoadError: If the file exists but is not a valid feedback document
        """
        self.json_path = Path(json_path)
        self._events: List[FeedbackEvent] = []
        self.dropped_count = 0
        self._load_events()

    def _load_events(self):
        if not self.json_path.exists():
            logger.info("No feedback log at %s; starting empty", self.json_path)
            return
        try:
            with open(self.json_path, "r") as f:
                data = json.load(f)
        except OSError as exc:
            raise FeedbackLoadError(str(self.json_path), str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise FeedbackLoadError(str(self.json_path), f"invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise FeedbackLoadError(str(self.json_path), "root must be a JSON object")
        entries = data.get("events", [])
        if not isinstance(entries, list):
            raise FeedbackLoadError(str(self.json_path), "'events' must be a list")

        for index, entry in enumerate(entries):
            try:
                self._events.append(event_from_dict(entry))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self.dropped_count += 1
                logger.warning(
                    "Dropping feedback entry #%d in %s: %r", index, self.json_path, exc
                )

        logger.info("Loaded %d feedback events from %s", len(self._events), self.json_path)

    def list_feedback_since(
        self,
        member_id: str,
        since: Optional[datetime] = None,
    ) -> List[FeedbackEvent]:
        return [
            e
            for e in self._events
            if e.member_id == member_id and (since is None or e.timestamp >= since)
        ]
