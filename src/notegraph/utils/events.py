"""
Event Logging

Append-only JSONL audit trail of authoring events.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from ..config import settings

logger = logging.getLogger(__name__)


def log_event(event_type: str, data: Dict[str, Any]) -> None:
    """
    Logs an event to the append-only JSONL file.

    Args:
        event_type: Type of event (e.g., "NOTE_CREATED", "NOTE_UPDATED")
        data: Event data dictionary
    """
    if not settings.EVENT_LOG_ENABLED:
        return

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event_type,
        "data": data
    }

    try:
        settings.EVENT_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(settings.EVENT_LOG_PATH, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except OSError as e:
        logger.warning("event logging error: %s", e)
