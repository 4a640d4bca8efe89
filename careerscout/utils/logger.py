# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging configuration for CareerScout."""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

__all__ = [
    "logger",
    "setup_logger",
    "configure_logging",
    "LogFormat",
    "AgentLog",
    "SessionLogger",
]


class LogFormat(str, Enum):
    """Supported log output formats."""

    JSON = "json"              # Structured JSON format (default)
    HUMAN = "human"            # Human-readable colored format
    TEXT = "text"              # Plain text format


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs logs as single-line JSON objects with consistent fields.
    """

    _RESERVED = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "message", "taskName",
        "thread", "threadName",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.pathname and record.lineno:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            k: v for k, v in record.__dict__.items() if k not in self._RESERVED
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """
    Human-readable log formatter with colors and clean layout.

    Uses ANSI colors for different log levels when attached to a terminal.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    def __init__(self, use_colors: bool = True):
        """Initialize formatter with optional color support."""
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human readability."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        level = record.levelname
        if self.use_colors:
            color = self.COLORS.get(level, "")
            level_str = f"{color}{self.BOLD}[{level:>8}]{self.RESET}"
            time_str = f"{self.DIM}{timestamp}{self.RESET}"
        else:
            level_str = f"[{level:>8}]"
            time_str = timestamp

        output = f"{time_str} {level_str} {record.getMessage()}"

        if record.exc_info:
            exc_text = self.formatException(record.exc_info)
            if self.use_colors:
                exc_text = f"{self.COLORS['ERROR']}{exc_text}{self.RESET}"
            output += f"\n{exc_text}"

        return output


class TextFormatter(logging.Formatter):
    """Plain text log formatter."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )


def get_log_level(level_str: str) -> int:
    """
    Convert log level string to logging constant.

    Args:
        level_str: Log level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logging level constant
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_str.upper(), logging.INFO)


def get_formatter(log_format: LogFormat, use_colors: bool = True) -> logging.Formatter:
    """Get the appropriate formatter for the specified format."""
    if log_format == LogFormat.JSON:
        return JsonFormatter()
    elif log_format == LogFormat.HUMAN:
        return HumanFormatter(use_colors=use_colors)
    else:
        return TextFormatter()


def configure_logging(
    level: str = "INFO",
    log_format: LogFormat = LogFormat.JSON,
    human_readable: bool = False,
) -> None:
    """
    Configure global logging settings for CareerScout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format type (JSON, HUMAN, TEXT)
        human_readable: If True, forces human-readable format regardless of log_format
    """
    if human_readable:
        log_format = LogFormat.HUMAN

    log_level = get_log_level(level)

    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(get_formatter(log_format))

    logger.addHandler(handler)


def setup_logger(
    name: str = "careerscout",
    level: int = logging.INFO,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Setup and configure a logger for CareerScout.

    The output format is taken from ``CAREERSCOUT_LOG_FORMAT`` (json, human,
    text) and the level from ``CAREERSCOUT_LOG_LEVEL`` when they are set.

    Args:
        name: Logger name
        level: Logging level
        format_string: Custom format string for log messages

    Returns:
        Configured logger instance
    """
    log = logging.getLogger(name)
    log.setLevel(level)
    log.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    env_format = os.environ.get("CAREERSCOUT_LOG_FORMAT", "json").lower()
    env_level = os.environ.get("CAREERSCOUT_LOG_LEVEL", "")

    if env_level:
        level = get_log_level(env_level)
        log.setLevel(level)
        handler.setLevel(level)

    if format_string is not None:
        formatter = logging.Formatter(format_string)
    elif env_format == "human":
        formatter = HumanFormatter()
    elif env_format == "text":
        formatter = TextFormatter()
    else:
        formatter = JsonFormatter()

    handler.setFormatter(formatter)
    log.addHandler(handler)

    return log


class AgentLog(Protocol):
    """Progress sink the crawler agent writes to for one session."""

    def log(self, message: str) -> None: ...

    def close(self) -> None: ...


class SessionLogger:
    """
    Per-session progress log that mirrors every line to a file.

    Opened at session start and closed at session end. Each message goes to
    the package logger at INFO level and to
    ``<log_dir>/agent_<company>_<timestamp>.log``.

    Example:
        >>> session_log = SessionLogger("acme", log_dir="output/logs")
        >>> session_log.log("[Agent] Step 1/30")
        >>> session_log.close()
    """

    BANNER_WIDTH = 70

    def __init__(
        self,
        company: str,
        log_dir: Union[str, Path] = "output/logs",
        parent: Optional[logging.Logger] = None,
    ) -> None:
        self._parent = parent or logger.getChild("session")
        self._closed = False

        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        started = datetime.now(timezone.utc)
        stamp = re.sub(r"[:.]", "-", started.isoformat())
        safe_company = re.sub(r"[^\w-]+", "_", company) or "unknown"
        self.log_file = directory / f"agent_{safe_company}_{stamp}.log"
        self._stream = open(self.log_file, "a", encoding="utf-8")

        self.log("=" * self.BANNER_WIDTH)
        self.log(f"Agent log started: {started.isoformat()}")
        self.log(f"Company: {company}")
        self.log("=" * self.BANNER_WIDTH)

    @property
    def closed(self) -> bool:
        return self._closed

    def log(self, message: str) -> None:
        """Write one progress line to the console logger and the session file."""
        self._parent.info(message)
        if not self._closed:
            self._stream.write(message + "\n")
            self._stream.flush()

    def close(self) -> None:
        """Close the session file. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._stream.close()


# Default logger instance
logger = setup_logger()
