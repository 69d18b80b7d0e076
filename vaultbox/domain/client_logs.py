"""In-process ring buffer of browser-side log entries."""
import json
import logging
import threading
from collections import deque
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

MAX_LOGS = 500
DEFAULT_READ_LIMIT = 200
LEVELS = ("error", "warn", "info", "debug")


class ClientLogBuffer:
    def __init__(self, max_entries: int = MAX_LOGS):
        self.max_entries = max_entries
        self._entries: deque = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def push(self, entry: Dict[str, Any]) -> None:
        with self._lock:
            self._entries.append(entry)

        level = entry.get("level", "error")
        message = json.dumps({"type": "client", **entry}, default=str)
        if level == "error":
            logger.error(message)
        elif level == "warn":
            logger.warning(message)
        else:
            logger.info(message)

    def recent(self, limit: int = DEFAULT_READ_LIMIT) -> List[Dict[str, Any]]:
        limit = min(max(limit, 1), self.max_entries)
        with self._lock:
            return list(self._entries)[-limit:]
