from __future__ import annotations

import json
import traceback
import uuid
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Mapping, TextIO
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

# Values that must never reach a log file.
SECRET_DATA_KEYS = frozenset({"access_token", "client_secret", "appsecret_proof", "authorization"})
# OAuth redirects also carry the one-time authorization code in the query.
SECRET_QUERY_PARAMS = SECRET_DATA_KEYS | {"code"}

REDACTED = "***"


def redact_url(url: str) -> str:
    """Replace credential-bearing query values with '***'."""
    value = (url or "").strip()
    if "?" not in value:
        return value
    parts = urlsplit(value)
    pairs = [
        (k, REDACTED if k.lower() in SECRET_QUERY_PARAMS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs, safe="*"), parts.fragment))


def redact_data(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {
            str(k): REDACTED if str(k).lower() in SECRET_DATA_KEYS else redact_data(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact_data(v) for v in data]
    return data


def _clip(text: str, limit: int) -> str:
    s = str(text or "")
    return s if len(s) <= limit else s[: max(0, limit - 1)] + "…"


class RunLogger:
    """
    JSONL event log for Graph API sessions.

    Each line is one JSON object: ts, level, event, session_id and, when
    given, url and data. Credentials are stripped from both before writing.
    The logger also counts events so callers can summarise a session.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        overwrite: bool = True,
        min_level: str = "DEBUG",
        session_id: str | None = None,
    ) -> None:
        self._path = Path(path)
        self._truncate_on_open = bool(overwrite)
        self._min_level = _LEVELS.get((min_level or "").strip().upper(), 10)
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._counts: Counter[str] = Counter()
        self._fp: TextIO | None = None
        self._lock = Lock()

    @classmethod
    def open(cls, path: str | Path, **kwargs: Any) -> "RunLogger":
        logger = cls(path, **kwargs)
        logger._ensure_open()
        return logger

    @property
    def path(self) -> Path:
        return self._path

    @property
    def session_id(self) -> str:
        return self._session_id

    def count(self, event: str) -> int:
        """How many times `event` was emitted (including filtered-out levels)."""
        return self._counts[event]

    def close(self) -> None:
        with self._lock:
            if self._fp is None:
                return
            try:
                self._fp.flush()
            finally:
                self._fp.close()
                self._fp = None

    def __enter__(self) -> "RunLogger":
        self._ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def debug(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("DEBUG", event, url=url, **data)

    def info(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("INFO", event, url=url, **data)

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("WARN", event, url=url, **data)

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("ERROR", event, url=url, **data)

    def exception(self, event: str, *, exc: BaseException, url: str | None = None, **data: Any) -> None:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        data["error"] = {
            "type": type(exc).__name__,
            "message": _clip(str(exc), 2000),
            "traceback": _clip(tb, 12000),
        }
        self.log("ERROR", event, url=url, **data)

    def log(self, level: str, event: str, *, url: str | None = None, **data: Any) -> None:
        name = (event or "").strip() or "event"
        lvl = (level or "").strip().upper() or "INFO"
        with self._lock:
            self._counts[name] += 1
        if _LEVELS.get(lvl, 20) < self._min_level:
            return

        record: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": lvl,
            "event": name,
            "session_id": self._session_id,
        }
        if url:
            record["url"] = redact_url(url)
        if data:
            record["data"] = redact_data(data)
        self._write(json.dumps(record, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str))

    def _ensure_open(self) -> None:
        with self._lock:
            if self._fp is not None:
                return
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fp = self._path.open("w" if self._truncate_on_open else "a", encoding="utf-8", newline="\n")
            # Reopening after close() appends.
            self._truncate_on_open = False

    def _write(self, line: str) -> None:
        self._ensure_open()
        with self._lock:
            if self._fp is None:
                return
            self._fp.write(line + "\n")
            self._fp.flush()
