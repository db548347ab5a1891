from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional


# ANSI color codes for terminal output
class Colors:
    GREY = "\033[90m"
    BLUE = "\033[94m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD_RED = "\033[1;91m"
    RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so other handlers still see the plain level name.
        record = logging.makeLogRecord(record.__dict__)
        log_color = self.LEVEL_COLORS.get(record.levelno, Colors.GREY)
        record.levelname = f"{log_color}{record.levelname}{Colors.RESET}"
        return super().format(record)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("price", "rsi", "signal", "trade_id", "strategy_id", "run_mode"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class EndpointFilter(logging.Filter):
    """Drop uvicorn access lines for endpoints the dashboard polls."""

    def __init__(self, *paths: str) -> None:
        super().__init__()
        self._paths = paths

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(f"{path} " in message for path in self._paths)


CONSOLE_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)s:%(lineno)d] %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str, *, json_logs: bool = False, log_file: Optional[str] = None) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    # Hide per-request logs by default; keep them available via DEBUG if needed.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, DATEFMT))
    root.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATEFMT))
        root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(f"gold_rsi_bot.{name}")
