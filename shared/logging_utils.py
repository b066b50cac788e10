"""Logging utilities for the slides server and the bridge client."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

LOGS_DIR = Path("logs")

_RESULT_PREVIEW_CHARS = 500
_MESSAGE_PREVIEW_CHARS = 100


def setup_logging(
    name: str,
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Path] = None,
    console_level: Union[int, str] = logging.WARNING,
    also: Iterable[str] = ("shared",),
) -> logging.Logger:
    """Configure the package logger ``name``.

    Installs a detailed file handler and a terse console handler. The console
    handler writes to stderr, which keeps stdout free for the stdio wire.

    Args:
        name: Top-level package name (e.g. "slidesServer")
        level: Level for the file handler
        log_dir: Directory for log files (default: ./logs)
        console_level: Level for the stderr handler
        also: Other package loggers that write to the same handlers

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    log_dir = log_dir or LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    for logger_name in (name, *also):
        package_logger = logging.getLogger(logger_name)
        package_logger.setLevel(logging.DEBUG)  # handlers filter
        package_logger.propagate = False
        package_logger.handlers = [file_handler, console_handler]

    logger.info("=" * 80)
    logger.info(f"{name} session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _preview(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "... (truncated)"
    return text


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        tool_name: Name of the tool being called
        args: Tool arguments
    """
    logger.info(f"Tool call: {tool_name}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result with a truncated preview."""
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Tool result: {tool_name} - {status}")
    logger.debug(f"  Result: {_preview(str(result), _RESULT_PREVIEW_CHARS)}")


def log_user_message(logger: logging.Logger, content: str) -> None:
    logger.info(f"User input: {_preview(content, _MESSAGE_PREVIEW_CHARS)}")


def log_agent_response(logger: logging.Logger, content: str) -> None:
    logger.info(f"Agent response: {_preview(content, _MESSAGE_PREVIEW_CHARS)}")


def log_error(logger: logging.Logger, error: BaseException, context: str = "") -> None:
    """Log error with context and traceback.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {error}")
    if context:
        logger.error(f"  Context: {context}")
    logger.debug("Full traceback:", exc_info=error)
