"""Hex-view channel: accumulates daemon-rendered rows into a HexBuffer."""

from typing import Callable, List, Optional, Tuple

from . import _codec as codec
from ._buffer import HexBuffer
from ._dispatch import ChannelHandler
from ._protocol import ASCII_COLUMN, BYTES_PER_ROW, Channel, HexViewCommand
from ._viewport import Viewport, offset_to_screen_column, position_to_offset


def _printable(b: int) -> str:
    return chr(b) if 0x20 <= b < 0x7F else "."


def _try_ascii_numpy(data: bytes) -> Optional[str]:
    """Translate a block to its ASCII-pane text with numpy. Returns None without numpy."""
    try:
        import numpy as np

        arr = np.frombuffer(data, dtype=np.uint8)
        printable = (arr >= 0x20) & (arr < 0x7F)
        return np.where(printable, arr, ord(".")).astype(np.uint8).tobytes().decode("ascii")
    except ImportError:
        pass
    return None


def format_rows(data: bytes, base_offset: int = 0) -> List[str]:
    """Render ``data`` as hex rows in the viewport column layout.

    ``base_offset`` is the object offset of ``data[0]``; it must sit on a row
    boundary for the columns to line up with ``offset_to_position``.
    """
    ascii_text = _try_ascii_numpy(data)
    if ascii_text is None:
        ascii_text = "".join(_printable(b) for b in data)

    lines = []
    for start in range(0, len(data), BYTES_PER_ROW):
        chunk = data[start:start + BYTES_PER_ROW]
        line = [" "] * (ASCII_COLUMN + len(chunk))
        label = f"{(base_offset + start) & 0xFFFFFFFF:08x}: "
        line[:len(label)] = label
        for i, b in enumerate(chunk):
            col = offset_to_screen_column(i)
            line[col:col + 2] = f"{b:02x}"
        line[ASCII_COLUMN:] = ascii_text[start:start + len(chunk)]
        lines.append("".join(line))
    return lines


class HexViewChannel(ChannelHandler):
    """Interprets hex-view frames.

    CLEAR remembers the cursor, APPEND accumulates bytes, and ITERATION_END
    flushes them into ``buffer``, puts the cursor back and, with a viewport
    attached, re-derives the selected offset from it.
    """

    channel = Channel.HEXVIEW
    commands = HexViewCommand

    def __init__(
        self,
        buffer: Optional[HexBuffer] = None,
        viewport: Optional[Viewport] = None,
        refresh_consumer: Optional[Callable[[HexBuffer], None]] = None,
    ) -> None:
        self.buffer = buffer if buffer is not None else HexBuffer()
        self.viewport = viewport
        self.refresh_consumer = refresh_consumer
        self._pending = bytearray()
        self._saved_cursor: Optional[Tuple[int, int]] = None
        super().__init__()

    def _handlers(self):
        return {
            HexViewCommand.ITERATION_BEGIN: self._noop,
            HexViewCommand.ITERATION_END: self._on_iteration_end,
            HexViewCommand.CLEAR: self._on_clear,
            HexViewCommand.APPEND: self._on_append,
            HexViewCommand.HIGHLIGHT: self._noop,
        }

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _on_clear(self, payload: bytes) -> None:
        self._saved_cursor = self.buffer.cursor
        self.buffer.clear()
        self._pending.clear()

    def _on_append(self, payload: bytes) -> None:
        self._pending.extend(payload)

    def _on_iteration_end(self, payload: bytes) -> None:
        self.buffer.append(codec.decode_text(bytes(self._pending)))
        self._pending.clear()

        saved = self._saved_cursor if self._saved_cursor is not None else self.buffer.cursor
        self._saved_cursor = None
        row, column = self.buffer.set_cursor(*saved)

        if self.viewport is not None:
            offset = position_to_offset(self.viewport, row, column)
            if offset is not None:
                self.viewport.selected_offset = offset

        if self.refresh_consumer is not None:
            self.refresh_consumer(self.buffer)
