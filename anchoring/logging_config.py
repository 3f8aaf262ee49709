"""
Logging configuration for the anchoring package

Anchoring walks a chain of fallbacks (selector kinds, then pages), so log
lines are drawn as a tree: each nested attempt is indented under the step
that started it.
"""

import io
import logging
import sys
from contextlib import contextmanager


class GlobalIndent:
    """Indentation state shared by every IndentLogger"""

    _level = 0
    _open_levels: set[int] = set()

    @classmethod
    def increase(cls) -> None:
        cls._level += 1
        cls._open_levels.add(cls._level - 1)

    @classmethod
    def decrease(cls) -> None:
        if cls._level > 0:
            cls._open_levels.discard(cls._level - 1)
            cls._level -= 1

    @classmethod
    def reset(cls) -> None:
        """Reset indentation state (useful for tests)"""
        cls._level = 0
        cls._open_levels = set()

    @classmethod
    def get_indent(cls) -> str:
        """Get current indentation string with tree characters"""
        if cls._level == 0:
            return ""

        parts = [
            "│   " if i in cls._open_levels else "    "
            for i in range(cls._level - 1)
        ]
        is_end = (cls._level - 1) not in cls._open_levels
        parts.append("└──" if is_end else "├──")
        return "".join(parts)


class IndentLogger:
    """Logger wrapper that prefixes messages with the current tree indent"""

    def __init__(self, base_logger: logging.Logger) -> None:
        self._logger = base_logger

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(f"{self.indent}{msg}", *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._logger.info(f"{self.indent}{msg}", *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(f"{self.indent}{msg}", *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(f"{self.indent}{msg}", *args, **kwargs)

    @property
    def indent(self) -> str:
        return GlobalIndent.get_indent()

    @contextmanager
    def indent_block(self, initial_message: str | None = None):
        """
        Context manager for a nested block of log lines

        Args:
            initial_message: Optional message to log at block start
        """
        if initial_message:
            self.debug(initial_message)
        GlobalIndent.increase()
        try:
            yield
        finally:
            GlobalIndent.decrease()


def setup_logging(level=logging.INFO):
    """
    Configure logging for the anchoring package

    Args:
        level: Logging level (default: INFO)

    Returns:
        IndentLogger: Configured logger with indentation support
    """
    base_logger = logging.getLogger("anchoring")
    base_logger.setLevel(level)
    base_logger.handlers = []

    # UTF-8 stream so tree characters survive non-UTF-8 consoles
    stream = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)8s %(message)s"))
    base_logger.addHandler(handler)

    return IndentLogger(base_logger)


logger = IndentLogger(logging.getLogger("anchoring"))
