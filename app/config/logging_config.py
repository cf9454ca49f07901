# app/config/logging_config.py
from __future__ import annotations

import json
import logging

from app.config.settings import get_settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


_configured = False


def setup_logging() -> None:
    """
    Configure the root logger once (console only).
    LOG_FORMAT=json switches to one JSON object per line.
    """
    global _configured
    if _configured:
        return

    s = get_settings()
    root = logging.getLogger()
    root.setLevel(s.LOG_LEVEL)

    if s.LOG_FORMAT == "json":
        fmt: logging.Formatter = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s | %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(fmt)
    root.addHandler(handler)
    _configured = True
