"""Per-channel command dispatch."""

import enum
from typing import Callable, Dict, Optional, Type, TYPE_CHECKING

from ._errors import ProtocolError, UnknownCommandError
from ._log import log
from ._protocol import Channel

if TYPE_CHECKING:
    from ._transport import Connection


class ChannelHandler:
    """Maps decoded (command, payload) pairs to channel-specific handlers.

    Subclasses set ``channel`` and ``commands`` (the channel's closed command
    enum) and return a handler for every member from ``_handlers()``.  A
    missing entry is a programming error caught at construction.
    """

    channel: Channel
    commands: Type[enum.IntEnum]

    def __init__(self) -> None:
        table = self._handlers()
        missing = [c.name for c in self.commands if c not in table]
        if missing:
            raise TypeError(
                f"{type(self).__name__} has no handler for {', '.join(missing)}"
            )
        self._table: Dict[int, Callable[[bytes], None]] = {
            int(c): fn for c, fn in table.items()
        }

    def _handlers(self) -> Dict[enum.IntEnum, Callable[[bytes], None]]:
        raise NotImplementedError

    def dispatch(self, connection: Optional["Connection"], command: int, payload: bytes) -> None:
        """Run the handler for ``command``.

        Unknown commands and handler protocol errors leave the connection
        failed; it must be reopened before further use.
        """
        if connection is not None and connection.failed:
            raise ProtocolError(
                f"Channel {self.channel.name} connection failed earlier; reopen it"
            )
        fn = self._table.get(command)
        if fn is None:
            if connection is not None:
                connection.fail()
            raise UnknownCommandError(self.channel, command)
        log.debug("%s <- %s (%d bytes)", self.channel.name,
                  self.commands(command).name, len(payload))
        try:
            fn(payload)
        except ProtocolError:
            if connection is not None:
                connection.fail()
            raise

    def _noop(self, payload: bytes) -> None:
        pass
