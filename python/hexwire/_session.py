"""Session class — owns one connection per daemon channel."""

import select
from typing import Callable, Dict, List, Optional, Union

from . import _codec as codec
from ._completion import CompletionChannel
from ._config import resolve_socket_path
from ._dispatch import ChannelHandler
from ._errors import ChannelNotRunningError, ConnectionError
from ._evalcb import EvalCallbackChannel
from ._hexview import HexViewChannel
from ._log import log
from ._output import OutputChannel
from ._protocol import Channel
from ._transport import Connection
from ._viewport import Fetcher, Viewport


class Session:
    """A client session against the analysis daemon.

    Usage::

        with Session() as s:                  # $HEXWIRE_SOCKET or default path
            s.open(Channel.OUTPUT)
            s.send_command("info")
            s.poll(0.5)
            print(s.output.buffer.text)

    Connections are created on first use.  A connection that died is not
    replaced implicitly: ``reopen()`` it.
    """

    def __init__(
        self,
        socket: Optional[str] = None,
        output: Optional[OutputChannel] = None,
        hexview: Optional[HexViewChannel] = None,
        completion: Optional[CompletionChannel] = None,
        eval_callback: Optional[EvalCallbackChannel] = None,
    ) -> None:
        self._socket_path = resolve_socket_path(socket)
        self._connections: Dict[Channel, Connection] = {}
        self._handlers: Dict[Channel, ChannelHandler] = {
            Channel.OUTPUT: output if output is not None else OutputChannel(),
            Channel.HEXVIEW: hexview if hexview is not None else HexViewChannel(),
            Channel.COMPLETION: completion if completion is not None else CompletionChannel(),
            Channel.EVAL_CALLBACK: (
                eval_callback if eval_callback is not None else EvalCallbackChannel()
            ),
        }
        self._closed = False

    # ─── Accessors ────────────────────────────────────────────────────────

    @property
    def socket_path(self) -> str:
        return self._socket_path

    @property
    def output(self) -> OutputChannel:
        return self._handlers[Channel.OUTPUT]

    @property
    def hexview(self) -> HexViewChannel:
        return self._handlers[Channel.HEXVIEW]

    @property
    def completion(self) -> CompletionChannel:
        return self._handlers[Channel.COMPLETION]

    @property
    def eval_callback(self) -> EvalCallbackChannel:
        return self._handlers[Channel.EVAL_CALLBACK]

    def connection(self, channel: Channel) -> Optional[Connection]:
        return self._connections.get(channel)

    def is_running(self, channel: Channel) -> bool:
        conn = self._connections.get(channel)
        return conn is not None and conn.usable

    # ─── Channel lifecycle ────────────────────────────────────────────────

    def open(self, channel: Channel) -> Connection:
        """Open ``channel`` unless a usable connection already exists.

        Connection failure is fatal for the channel and is not retried.
        """
        if self._closed:
            raise ConnectionError("Session is closed")
        conn = self._connections.get(channel)
        if conn is not None:
            if conn.usable:
                return conn
            conn.close()
        conn = Connection.open(self._socket_path, channel, self._handlers.get(channel))
        self._connections[channel] = conn
        log.info("channel %s open on %s", channel.name, self._socket_path)
        return conn

    def close_channel(self, channel: Channel) -> None:
        conn = self._connections.pop(channel, None)
        if conn is not None:
            conn.close()

    def reopen(self, channel: Channel) -> Connection:
        self.close_channel(channel)
        return self.open(channel)

    # ─── Outbound ─────────────────────────────────────────────────────────

    def _send(self, channel: Channel, content: Union[str, bytes]) -> None:
        if isinstance(content, str):
            content = codec.encode_text(content)
        conn = self._connections.get(channel)
        if conn is None:
            conn = self.open(channel)
        elif not conn.usable:
            raise ChannelNotRunningError(channel)
        log.debug("%s -> %d bytes", channel.name, len(content))
        conn.send(content)

    def send_command(self, text: Union[str, bytes]) -> None:
        """Frame and send a textual command on the command channel."""
        self._send(Channel.COMMAND, text)

    def send_code(self, text: Union[str, bytes]) -> None:
        """Frame and send a code snippet on the code channel."""
        self._send(Channel.CODE, text)

    # ─── Hex view ─────────────────────────────────────────────────────────

    def attach_viewport(self, viewport: Optional[Viewport]) -> None:
        self.hexview.viewport = viewport

    def hexview_fetcher(self, format_request: Callable[[int, int], str]) -> Fetcher:
        """Build a viewport fetcher sending ``format_request(start, length)`` as code."""

        def fetch(start: int, length: int) -> None:
            self.send_code(format_request(start, length))

        return fetch

    # ─── Inbound ──────────────────────────────────────────────────────────

    def _polled(self) -> List[Connection]:
        return [
            c for c in self._connections.values()
            if c.channel.inbound and c.usable and not c.has_reader
        ]

    def poll(self, timeout: Optional[float] = 0.0) -> int:
        """Read and dispatch whatever is available on inbound channels.

        Returns the number of connections that had data.  Protocol errors
        propagate to the caller; the failing connection is left unusable.
        """
        conns = self._polled()
        if not conns:
            return 0
        try:
            ready, _, _ = select.select(conns, [], [], timeout)
        except (ValueError, OSError) as e:
            log.warning("poll select failed: %s", e)
            return 0
        for conn in ready:
            conn.pump()
        return len(ready)

    def start_readers(self) -> None:
        """Give every open inbound connection its own reader thread.

        Handlers then run on those threads; serialize viewport access.
        """
        for conn in self._polled():
            conn.start_reader()

    # ─── Teardown ─────────────────────────────────────────────────────────

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for channel in list(self._connections):
            self.close_channel(channel)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass
