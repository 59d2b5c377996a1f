"""
Intake Logging Configuration - Color-Coded Logs

Provides:
- ColorFormatter: ANSI color-coded log output
- Helper functions: log_message_in, log_message_out, log_state, log_middleware, log_tool, log_llm
- setup_logging(): Configure application logging

All helpers run user text through utils.redaction before it is logged.

Usage:
    from logging_config import setup_logging, log_message_in, log_tool
    setup_logging()
    logger = logging.getLogger(__name__)
    log_message_in(logger, "I need help with a divorce", session="abc")
"""

import logging
import sys

from utils.redaction import describe_text, redact_parameters

# ANSI color codes
COLORS = {
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
    "DIM": "\033[2m",
    # Event colors
    "MSG_IN": "\033[96m",  # Cyan - incoming message
    "MSG_OUT": "\033[92m",  # Green - outgoing response
    "STATE": "\033[95m",  # Magenta - state transitions
    "TOOL": "\033[93m",  # Yellow - tool calls
    "LLM": "\033[94m",  # Blue - AI collaborator calls
    "ERROR": "\033[91m",  # Red - errors
    "WARN": "\033[33m",  # Orange/Yellow - warnings
    "DEBUG": "\033[90m",  # Gray - debug info
}


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    LEVEL_COLORS = {
        logging.DEBUG: COLORS["DEBUG"],
        logging.INFO: COLORS["RESET"],
        logging.WARNING: COLORS["WARN"],
        logging.ERROR: COLORS["ERROR"],
        logging.CRITICAL: COLORS["ERROR"] + COLORS["BOLD"],
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, COLORS["RESET"])

        # Format: timestamp [LEVEL] message (no module name for compactness)
        timestamp = self.formatTime(record, "%H:%M:%S")
        level = record.levelname[:4]

        formatted = (
            f"{COLORS['DIM']}{timestamp}{COLORS['RESET']} "
            f"[{color}{level}{COLORS['RESET']}] "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(level: int = logging.INFO) -> None:
    """Configure colored logging for the application."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# =============================================================================
# COLORED LOG HELPER FUNCTIONS
# =============================================================================


def _fmt(context: dict) -> str:
    return " ".join(f"{k}={v}" for k, v in context.items()) if context else ""


def log_message_in(logger: logging.Logger, message: str, **context) -> None:
    """Log incoming user message (length only, never the text).

    Args:
        logger: Logger instance
        message: Latest user message text
        **context: Additional context (session, team, count, etc.)
    """
    logger.info(f"{COLORS['MSG_IN']}>>> MESSAGE{COLORS['RESET']} {describe_text(message)} [{_fmt(context)}]")


def log_message_out(logger: logging.Logger, source: str, tool: str = None, state: str = "") -> None:
    """Log outgoing reply.

    Args:
        logger: Logger instance
        source: Where the reply came from (middleware name, "ai", "bypass", ...)
        tool: Tool dispatched this turn, if any
        state: Intake state after the turn
    """
    logger.info(
        f"{COLORS['MSG_OUT']}<<< RESPONSE{COLORS['RESET']} "
        f"source={source} tool={tool or 'none'} state={state}"
    )


def log_state(logger: logging.Logger, previous: str, current: str, **context) -> None:
    """Log an intake state derivation; highlights changes."""
    if previous == current:
        logger.debug(f"{COLORS['STATE']}... STATE{COLORS['RESET']} {current} {_fmt(context)}")
    else:
        logger.info(f"{COLORS['STATE']}... STATE{COLORS['RESET']} {previous} -> {current} {_fmt(context)}")


def log_middleware(logger: logging.Logger, name: str, stopped: bool) -> None:
    """Log a middleware unit outcome."""
    if stopped:
        logger.info(f"{COLORS['STATE']}||| MIDDLEWARE{COLORS['RESET']} {name} short-circuited")
    else:
        logger.debug(f"{COLORS['DEBUG']}||| MIDDLEWARE{COLORS['RESET']} {name} passed")


def log_tool(
    logger: logging.Logger,
    tool_name: str,
    state: str,
    **context,
) -> None:
    """Log tool execution.

    Args:
        logger: Logger instance
        tool_name: Name of the tool
        state: 'start' or 'end'
        **context: Additional context; values are redacted before logging
    """
    ctx = _fmt(redact_parameters(context)) if context else ""
    if state == "start":
        logger.info(f"{COLORS['TOOL']}>>> TOOL{COLORS['RESET']} {tool_name} {ctx}")
    else:
        logger.info(f"{COLORS['TOOL']}<<< TOOL{COLORS['RESET']} {tool_name} {ctx}")


def log_llm(
    logger: logging.Logger,
    state: str,
    model: str = "",
    duration: float = 0,
) -> None:
    """Log AI collaborator call.

    Args:
        logger: Logger instance
        state: 'start' or 'end'
        model: Model name
        duration: Call duration in seconds (for end state)
    """
    if state == "start":
        logger.info(f"{COLORS['LLM']}>>> LLM{COLORS['RESET']} calling {model}")
    else:
        logger.info(f"{COLORS['LLM']}<<< LLM{COLORS['RESET']} " f"{model} completed in {duration:.1f}s")
