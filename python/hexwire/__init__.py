"""hexwire — client transport for an interactive binary-analysis daemon.

The daemon multiplexes output, command, code, hex-view, completion and
eval-callback channels over one Unix socket address; each channel is a
separate connection selected by a one-byte handshake.

Usage::

    import hexwire as hw

    with hw.Session("/run/user/1000/hexwire/hexwire.sock") as s:
        s.open(hw.Channel.OUTPUT)
        s.send_command("help")
        s.poll(0.5)
        print(s.output.buffer.text)

Hex viewport addressing is pure and usable on its own::

    v = hw.Viewport(visible_row_count=10)
    hw.snap_to(v, 0x1234)      # -> (0, 20); start_offset == 0x1230
"""

from ._session import Session
from ._transport import Connection
from ._codec import FrameDecoder, DecoderState, encode_frame, encode_outbound
from ._protocol import (
    Channel,
    OutputCommand,
    HexViewCommand,
    CompletionCommand,
    EvalCallbackCommand,
    BYTES_PER_ROW,
)
from ._dispatch import ChannelHandler
from ._buffer import OutputBuffer, HexBuffer, StyledRun
from ._output import OutputChannel, EvalResult
from ._hexview import HexViewChannel, format_rows
from ._completion import CompletionChannel
from ._evalcb import EvalCallbackChannel
from ._viewport import (
    Viewport,
    row_start_offset,
    offset_to_screen_column,
    offset_to_ascii_column,
    offset_to_position,
    position_to_offset,
    snap_to,
    scroll_by_rows,
    page_down,
    page_up,
    line_down,
    line_up,
    step,
    move_to_row_start,
    move_to_row_end,
)
from ._errors import (
    HexwireError,
    ConnectionError,
    ChannelNotRunningError,
    ProtocolError,
    FramingError,
    UnknownCommandError,
    StyleMismatchError,
)

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("hexwire")
except Exception:
    __version__ = "0.1.0"

__all__ = [
    # Session / transport
    "Session",
    "Connection",
    "FrameDecoder",
    "DecoderState",
    "encode_frame",
    "encode_outbound",
    # Protocol
    "Channel",
    "OutputCommand",
    "HexViewCommand",
    "CompletionCommand",
    "EvalCallbackCommand",
    "BYTES_PER_ROW",
    # Channels
    "ChannelHandler",
    "OutputChannel",
    "EvalResult",
    "HexViewChannel",
    "CompletionChannel",
    "EvalCallbackChannel",
    # Presentation
    "OutputBuffer",
    "HexBuffer",
    "StyledRun",
    "format_rows",
    # Viewport
    "Viewport",
    "row_start_offset",
    "offset_to_screen_column",
    "offset_to_ascii_column",
    "offset_to_position",
    "position_to_offset",
    "snap_to",
    "scroll_by_rows",
    "page_down",
    "page_up",
    "line_down",
    "line_up",
    "step",
    "move_to_row_start",
    "move_to_row_end",
    # Errors
    "HexwireError",
    "ConnectionError",
    "ChannelNotRunningError",
    "ProtocolError",
    "FramingError",
    "UnknownCommandError",
    "StyleMismatchError",
]
