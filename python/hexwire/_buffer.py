"""Headless presentation buffers read by the front-end."""

from typing import List, NamedTuple, Optional, Tuple


class StyledRun(NamedTuple):
    """A span of buffer text and the styles applied to it.

    ``styles`` is ordered innermost-first: the most recently opened style
    comes first and wins when the front-end layers them.
    """

    start: int
    end: int
    styles: Tuple[str, ...]


class OutputBuffer:
    """Append-only text buffer with style runs and iteration regions."""

    __slots__ = ("_chunks", "_end", "_runs", "_regions")

    def __init__(self) -> None:
        self._chunks: List[str] = []
        self._end = 0
        self._runs: List[StyledRun] = []
        self._regions: List[Tuple[int, int]] = []

    @property
    def text(self) -> str:
        if len(self._chunks) > 1:
            self._chunks = ["".join(self._chunks)]
        return self._chunks[0] if self._chunks else ""

    @property
    def end(self) -> int:
        """Position just past the last character."""
        return self._end

    @property
    def runs(self) -> List[StyledRun]:
        return list(self._runs)

    @property
    def regions(self) -> List[Tuple[int, int]]:
        """Output regions of completed iterations, oldest first."""
        return list(self._regions)

    @property
    def last_region(self) -> Optional[Tuple[int, int]]:
        return self._regions[-1] if self._regions else None

    def ends_with_newline(self) -> bool:
        for chunk in reversed(self._chunks):
            if chunk:
                return chunk.endswith("\n")
        return False

    def append(self, text: str, styles: Tuple[str, ...] = ()) -> Tuple[int, int]:
        start = self._end
        if not text:
            return start, start
        self._chunks.append(text)
        self._end += len(text)
        if styles:
            self._runs.append(StyledRun(start, self._end, styles))
        return start, self._end

    def mark_iteration(self, start: int, end: int) -> None:
        self._regions.append((start, end))

    def region_text(self, region: Tuple[int, int]) -> str:
        start, end = region
        return self.text[start:end]

    def styles_at(self, pos: int) -> Tuple[str, ...]:
        for run in reversed(self._runs):
            if run.start <= pos < run.end:
                return run.styles
        return ()

    def clear(self) -> None:
        self._chunks.clear()
        self._end = 0
        self._runs.clear()
        self._regions.clear()


class HexBuffer:
    """Row-oriented hex dump text plus a (row, column) cursor."""

    __slots__ = ("_text", "_cursor")

    def __init__(self) -> None:
        self._text = ""
        self._cursor = (0, 0)

    @property
    def text(self) -> str:
        return self._text

    @property
    def lines(self) -> List[str]:
        return self._text.splitlines()

    @property
    def cursor(self) -> Tuple[int, int]:
        return self._cursor

    def __len__(self) -> int:
        return len(self.lines)

    def append(self, text: str) -> None:
        self._text += text

    def clear(self) -> None:
        self._text = ""

    def set_cursor(self, row: int, column: int) -> Tuple[int, int]:
        """Move the cursor, clamped to the buffer contents."""
        lines = self.lines
        if not lines:
            self._cursor = (0, 0)
            return self._cursor
        row = min(max(row, 0), len(lines) - 1)
        column = min(max(column, 0), len(lines[row]))
        self._cursor = (row, column)
        return self._cursor
