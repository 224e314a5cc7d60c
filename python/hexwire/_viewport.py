"""Hex viewport addressing: byte offsets <-> on-screen (row, column).

Pure arithmetic over a Viewport; the only side effect is the re-fetch
request issued by ``snap_to`` and ``scroll_by_rows``.

Row layout (xxd style)::

    00000010: 0011 2233 4455 6677 8899 aabb ccdd eeff  ................
    ^0        ^10  ^15                                 ^51
"""

from typing import Callable, Optional, Tuple

from ._log import log
from ._protocol import ADDRESS_WIDTH, ASCII_COLUMN, BYTES_PER_ROW

Position = Tuple[int, int]
Fetcher = Callable[[int, int], None]


class Viewport:
    """Which byte range of the inspected object is on screen.

    ``fetcher(start, length)`` is called for every re-fetch request; the data
    source is responsible for rejecting or clamping out-of-range reads.
    """

    __slots__ = ("start_offset", "visible_row_count", "selected_offset",
                 "total_rows", "fetcher", "refetch_count")

    bytes_per_row = BYTES_PER_ROW

    def __init__(
        self,
        visible_row_count: int,
        start_offset: int = 0,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        if visible_row_count < 1:
            raise ValueError(f"visible_row_count must be >= 1, got {visible_row_count}")
        self.start_offset = start_offset
        self.visible_row_count = visible_row_count
        self.selected_offset: Optional[int] = None
        self.total_rows: Optional[int] = None
        self.fetcher = fetcher
        self.refetch_count = 0

    @classmethod
    def for_height(cls, height: int, chrome_lines: int = 0, **kwargs) -> "Viewport":
        """Build a viewport filling ``height`` display lines."""
        return cls(max(1, height - chrome_lines), **kwargs)

    @property
    def visible_bytes(self) -> int:
        return self.visible_row_count * BYTES_PER_ROW

    @property
    def end_offset(self) -> int:
        """First offset past the visible range."""
        return self.start_offset + self.visible_bytes

    def __repr__(self) -> str:
        return (f"Viewport(start=0x{self.start_offset:x}, rows={self.visible_row_count}, "
                f"selected={self.selected_offset})")


# ─── Columns ──────────────────────────────────────────────────────────────────

def offset_to_screen_column(index: int) -> int:
    """Hex-pane column of byte ``index`` (0..15) within a row."""
    if not 0 <= index < BYTES_PER_ROW:
        raise ValueError(f"byte index out of row: {index}")
    return ADDRESS_WIDTH + 2 * index + index // 2


def offset_to_ascii_column(index: int) -> int:
    """ASCII-pane column of byte ``index`` (0..15) within a row."""
    if not 0 <= index < BYTES_PER_ROW:
        raise ValueError(f"byte index out of row: {index}")
    return ASCII_COLUMN + index


def column_to_byte_index(column: int) -> Optional[int]:
    """Byte index under ``column``, or None for labels, separators and gaps."""
    if ADDRESS_WIDTH <= column < ASCII_COLUMN:
        rel = column - ADDRESS_WIDTH
        group, within = divmod(rel, 5)  # "hhhh " per two bytes
        if within == 4:
            return None
        index = 2 * group + within // 2
        return index if index < BYTES_PER_ROW else None
    if ASCII_COLUMN <= column < ASCII_COLUMN + BYTES_PER_ROW:
        return column - ASCII_COLUMN
    return None


# ─── Offsets ──────────────────────────────────────────────────────────────────

def row_start_offset(viewport: Viewport, row: int) -> int:
    return viewport.start_offset + row * BYTES_PER_ROW


def is_visible(viewport: Viewport, offset: int) -> bool:
    return viewport.start_offset <= offset < viewport.end_offset


def offset_to_position(viewport: Viewport, offset: int) -> Optional[Position]:
    """Screen (row, hex column) of ``offset``; None when not visible."""
    if not is_visible(viewport, offset):
        return None
    row, index = divmod(offset - viewport.start_offset, BYTES_PER_ROW)
    return row, offset_to_screen_column(index)


def position_to_offset(viewport: Viewport, row: int, column: int) -> Optional[int]:
    """Inverse of ``offset_to_position`` over both panes."""
    if not 0 <= row < viewport.visible_row_count:
        return None
    index = column_to_byte_index(column)
    if index is None:
        return None
    return row_start_offset(viewport, row) + index


# ─── Navigation ───────────────────────────────────────────────────────────────

def request_refetch(viewport: Viewport) -> None:
    viewport.refetch_count += 1
    log.debug("refetch 0x%x+%d", viewport.start_offset, viewport.visible_bytes)
    if viewport.fetcher is not None:
        viewport.fetcher(viewport.start_offset, viewport.visible_bytes)


def snap_to(viewport: Viewport, offset: int) -> Position:
    """Make ``offset`` visible and selected, scrolling only when needed.

    A scroll puts ``offset`` on the first row and issues one re-fetch.
    """
    pos = offset_to_position(viewport, offset)
    if pos is None:
        viewport.start_offset = offset - offset % BYTES_PER_ROW
        request_refetch(viewport)
        pos = offset_to_position(viewport, offset)
        if pos is None:
            raise ValueError(f"Offset {offset:#x} is not addressable")
    viewport.selected_offset = offset
    return pos


def scroll_by_rows(viewport: Viewport, delta: int, total_rows: Optional[int] = None) -> None:
    """Move the viewport by ``delta`` rows and issue one re-fetch.

    Neither end is clamped here; ``total_rows`` is what the data source
    reported as available and is only recorded.  The selection keeps its
    screen row.
    """
    shift = delta * BYTES_PER_ROW
    viewport.start_offset += shift
    if viewport.selected_offset is not None:
        viewport.selected_offset += shift
    if total_rows is not None:
        viewport.total_rows = total_rows
        if viewport.start_offset >= total_rows * BYTES_PER_ROW:
            log.debug("scrolled past reported end (%d rows)", total_rows)
    request_refetch(viewport)


def page_down(viewport: Viewport, total_rows: Optional[int] = None) -> None:
    scroll_by_rows(viewport, viewport.visible_row_count, total_rows)


def page_up(viewport: Viewport, total_rows: Optional[int] = None) -> None:
    scroll_by_rows(viewport, -viewport.visible_row_count, total_rows)


def line_down(viewport: Viewport, total_rows: Optional[int] = None) -> None:
    scroll_by_rows(viewport, 1, total_rows)


def line_up(viewport: Viewport, total_rows: Optional[int] = None) -> None:
    scroll_by_rows(viewport, -1, total_rows)


def _current_offset(viewport: Viewport) -> int:
    if viewport.selected_offset is not None:
        return viewport.selected_offset
    return viewport.start_offset


def step(viewport: Viewport, delta: int) -> Position:
    """Move the selection by ``delta`` bytes."""
    return snap_to(viewport, _current_offset(viewport) + delta)


def _current_row(viewport: Viewport) -> int:
    current = _current_offset(viewport)
    pos = offset_to_position(viewport, current)
    if pos is None:
        snap_to(viewport, current)
        pos = offset_to_position(viewport, current)
    return pos[0]


def move_to_row_start(viewport: Viewport) -> Position:
    row = _current_row(viewport)
    return snap_to(viewport, row_start_offset(viewport, row))


def move_to_row_end(viewport: Viewport) -> Position:
    row = _current_row(viewport)
    return snap_to(viewport, row_start_offset(viewport, row) + BYTES_PER_ROW - 1)
