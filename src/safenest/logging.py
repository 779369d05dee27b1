from __future__ import annotations

import asyncio
import json
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}
_SENSITIVE_TOKENS = ("token", "secret", "password", "api_key", "apikey", "authorization")


class SafeNestLogger:
    """Structured JSON logger writing one record per line to stderr."""

    def __init__(self, name: str = "safenest", level: Optional[str] = None):
        self.name = name
        level = (level or os.environ.get("SAFENEST_LOG_LEVEL") or "info").lower()
        self._threshold = _LEVELS.get(level, _LEVELS["info"])

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit("debug", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("error", message, **kwargs)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Context manager that tracks stage timing."""
        start = datetime.now(timezone.utc)
        self.debug("stage_start", stage=name)
        status = "ok"
        try:
            yield
        except BaseException as exc:
            status = "cancelled" if isinstance(exc, asyncio.CancelledError) else "error"
            raise
        finally:
            end = datetime.now(timezone.utc)
            duration_ms = int((end - start).total_seconds() * 1000)
            self.debug("stage_end", stage=name, duration_ms=duration_ms, status=status)

    def _emit(self, level: str, message: str, **kwargs: Any) -> None:
        if _LEVELS[level] < self._threshold:
            return
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "logger": self.name,
            "message": message,
        }
        payload.update(self._sanitize(kwargs))

        sys.stderr.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        sys.stderr.flush()

    @staticmethod
    def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
        redacted: Dict[str, Any] = {}
        for key, value in fields.items():
            if SafeNestLogger._is_sensitive_key(key):
                redacted[key] = "***"
            else:
                redacted[key] = value
        return redacted

    @staticmethod
    def _is_sensitive_key(key: str) -> bool:
        lowered = key.lower()
        return any(token in lowered for token in _SENSITIVE_TOKENS)
