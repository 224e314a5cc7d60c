"""Socket I/O + channel handshake for one logical daemon channel."""

import socket
import threading
from typing import Optional, TYPE_CHECKING

from . import _codec as codec
from ._codec import FrameDecoder
from ._config import connect_timeout, recv_size
from ._errors import (
    ChannelNotRunningError,
    ConnectionError,
    FramingError,
    HexwireError,
    ProtocolError,
)
from ._log import log
from ._protocol import Channel

if TYPE_CHECKING:
    from ._dispatch import ChannelHandler


class Connection:
    """One stream socket bound to a single channel.

    Holds the decoder state, the inbound accumulator and the handler that
    receives decoded frames.  A connection never reconnects; once closed or
    failed it has to be replaced by a freshly opened one.
    """

    __slots__ = ("channel", "_sock", "_decoder", "_handler", "_failed", "_reader", "_recv_size")

    def __init__(
        self,
        channel: Channel,
        sock: Optional[socket.socket] = None,
        handler: Optional["ChannelHandler"] = None,
    ) -> None:
        self.channel = channel
        self._sock = sock
        self._decoder = FrameDecoder()
        self._handler = handler
        self._failed = False
        self._reader: Optional[threading.Thread] = None
        self._recv_size = recv_size()

    @staticmethod
    def open(
        path: str,
        channel: Channel,
        handler: Optional["ChannelHandler"] = None,
        timeout: Optional[float] = None,
    ) -> "Connection":
        """Connect to the rendezvous socket and select ``channel``.

        The handshake is a single byte sent immediately after connecting.
        """
        if timeout is None:
            timeout = connect_timeout()
        sock = None
        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            sock.connect(path)
            sock.sendall(channel.handshake)
            sock.settimeout(None)
        except OSError as e:
            if sock is not None:
                sock.close()
            raise ConnectionError(
                f"Failed to open channel {channel.name} on {path}: {e}"
            ) from e
        log.debug("handshake 0x%02X (%s) on %s", channel.value, channel.name, path)
        return Connection(channel, sock, handler)

    # ─── State ────────────────────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def usable(self) -> bool:
        return self.is_open and not self._failed

    @property
    def decoder(self) -> FrameDecoder:
        return self._decoder

    @property
    def handler(self) -> Optional["ChannelHandler"]:
        return self._handler

    @property
    def has_reader(self) -> bool:
        return self._reader is not None and self._reader.is_alive()

    def fileno(self) -> int:
        if self._sock is None:
            return -1
        return self._sock.fileno()

    def fail(self) -> None:
        """Clear decoder state and mark the connection unusable."""
        self._decoder.reset()
        self._failed = True

    def close(self) -> None:
        sock = self._sock
        if sock is None:
            return
        self._sock = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            sock.close()
        except OSError:
            pass
        reader = self._reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=0.5)
        self._reader = None
        log.info("channel %s closed", self.channel.name)

    # ─── Outbound ─────────────────────────────────────────────────────────

    def send(self, content: bytes) -> None:
        """Send one outbound frame; fire-and-forget."""
        if self._sock is None:
            raise ChannelNotRunningError(self.channel)
        data = codec.encode_outbound(content)
        try:
            self._sock.sendall(data)
        except OSError as e:
            self.close()
            raise ConnectionError(f"Send on {self.channel.name} failed: {e}") from e

    # ─── Inbound ──────────────────────────────────────────────────────────

    def feed(self, data: bytes) -> int:
        """Decode ``data`` and dispatch every complete frame.

        Returns the number of frames handled.  A framing error leaves the
        connection failed; a frame whose handler raised is not redelivered.
        """
        if self._failed:
            raise ProtocolError(
                f"Channel {self.channel.name} connection failed earlier; reopen it"
            )
        handled = 0
        frames = self._decoder.feed(data)
        try:
            for command, payload in frames:
                if self._handler is None:
                    log.debug("dropping frame 0x%02X on %s (no handler)",
                              command, self.channel.name)
                else:
                    self._handler.dispatch(self, command, payload)
                handled += 1
        except FramingError:
            self.fail()
            raise
        finally:
            frames.close()
        return handled

    def pump(self) -> bool:
        """Read one chunk from the socket and feed it.

        Returns False once the daemon has closed the connection.
        """
        sock = self._sock
        if sock is None:
            return False
        try:
            chunk = sock.recv(self._recv_size)
        except OSError as e:
            self.close()
            raise ConnectionError(f"Recv on {self.channel.name} failed: {e}") from e
        if not chunk:
            if self._sock is not None:
                log.warning("daemon closed channel %s", self.channel.name)
            self.close()
            return False
        self.feed(chunk)
        return True

    def start_reader(self) -> threading.Thread:
        """Run the inbound read loop on a daemon thread."""
        if self._reader is not None and self._reader.is_alive():
            return self._reader
        self._reader = threading.Thread(
            target=self._reader_loop,
            name=f"hexwire-{self.channel.name.lower()}",
            daemon=True,
        )
        self._reader.start()
        return self._reader

    def _reader_loop(self) -> None:
        while self.is_open:
            try:
                if not self.pump():
                    break
            except HexwireError as e:
                if self.is_open:
                    log.error("channel %s reader stopped: %s", self.channel.name, e)
                self.close()
                break
