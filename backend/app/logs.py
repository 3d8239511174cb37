import json
import sys
from datetime import datetime, timezone

from .config import settings

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


def _enabled(level: str) -> bool:
    threshold = _LEVELS.get(settings.log_level, 20)
    return _LEVELS.get(level, 20) >= threshold


def json_log(level: str, event: str, **fields):
    if not _enabled(level):
        return
    rec = {"ts": datetime.now(timezone.utc).isoformat(), "level": level, "event": event, **fields}
    print(json.dumps(rec, default=str), file=sys.stderr)


def compact_sql(sql: str) -> str:
    return " ".join(str(sql or "").split())
