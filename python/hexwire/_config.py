"""Client configuration resolved from arguments and the environment."""

import os
from typing import Optional

DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_RECV_SIZE = 64 * 1024


def resolve_socket_path(explicit: Optional[str] = None) -> str:
    """Resolve the daemon's rendezvous socket path.

    1. Explicit path passed to Session(socket=...)
    2. $HEXWIRE_SOCKET environment variable
    3. $XDG_RUNTIME_DIR/hexwire/hexwire.sock
    4. /tmp/hexwire-$USER/hexwire.sock
    """
    if explicit:
        return explicit

    env_sock = os.environ.get("HEXWIRE_SOCKET")
    if env_sock:
        return env_sock

    xdg = os.environ.get("XDG_RUNTIME_DIR")
    user = os.environ.get("USER", os.environ.get("LOGNAME", "unknown"))

    if xdg:
        return os.path.join(xdg, "hexwire", "hexwire.sock")

    return f"/tmp/hexwire-{user}/hexwire.sock"


def _env_number(name: str, default, cast):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def connect_timeout() -> float:
    """Seconds to wait for the daemon to accept a channel connection."""
    return _env_number("HEXWIRE_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT, float)


def recv_size() -> int:
    """Maximum bytes read from a channel socket per recv() call."""
    return _env_number("HEXWIRE_RECV_SIZE", DEFAULT_RECV_SIZE, int)
