"""hexwire client logger.

Usage from any module::

    from ._log import log

    log.debug("handshake %s on %s", channel.name, path)
    log.warning("connection dropped on %s", channel.name)

Enable via environment variable::

    HEXWIRE_LOG=DEBUG hexwire tail    # all messages
    HEXWIRE_LOG=INFO  hexwire tail    # info and above
    HEXWIRE_LOG=1     hexwire tail    # alias for DEBUG

Or programmatically::

    import logging
    logging.getLogger("hexwire").setLevel(logging.DEBUG)
"""

import logging
import os

log = logging.getLogger("hexwire")

# ANSI color codes
_COLORS = {
    "DEBUG": "\033[36m",    # Cyan
    "INFO": "\033[32m",     # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",    # Red
    "RESET": "\033[0m",     # Reset
}

_ALIASES = {"1": "DEBUG", "0": "WARNING", "TRUE": "DEBUG", "FALSE": "WARNING"}


class ColoredFormatter(logging.Formatter):
    """Add colors to log levels when output is a TTY."""

    handler = None

    def format(self, record):
        stream = getattr(self.handler, "stream", None)
        if stream is not None and hasattr(stream, "isatty") and stream.isatty():
            color = _COLORS.get(record.levelname, "")
            reset = _COLORS["RESET"]
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


def configure(level_str: str) -> bool:
    """Apply a level name (or alias) to the package logger.

    Returns False when the name is not a logging level.
    """
    level_str = level_str.strip().upper()
    level_str = _ALIASES.get(level_str, level_str)
    level = getattr(logging, level_str, None)
    if not isinstance(level, int):
        return False
    log.setLevel(level)
    if not log.handlers:
        handler = logging.StreamHandler()
        formatter = ColoredFormatter(
            "[hexwire %(levelname)s] %(message)s (%(filename)s:%(lineno)d)"
        )
        formatter.handler = handler  # formatter checks the handler's stream for a TTY
        handler.setFormatter(formatter)
        log.addHandler(handler)
    return True


# Configure from HEXWIRE_LOG env var if set
_level_str = os.environ.get("HEXWIRE_LOG", "")
if _level_str.strip():
    configure(_level_str)
