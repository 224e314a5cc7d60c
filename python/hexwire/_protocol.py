"""Wire protocol constants shared with the analysis daemon."""

import enum
import struct

# ─── Wire format ──────────────────────────────────────────────────────────────

# Every frame starts with a little-endian u16 length.  Inbound frames count
# command byte + payload + trailing NUL; outbound frames count raw content only.
LENGTH_FMT = "<H"
LENGTH_SIZE = struct.calcsize(LENGTH_FMT)

MIN_FRAME_LENGTH = 2  # command byte + trailing NUL
MAX_OUTBOUND_LENGTH = 0xFFFF
FRAME_TERMINATOR = 0x00

# Completion candidates are NUL-delimited inside a frame payload
CANDIDATE_SEP = b"\x00"


# ─── Channels ─────────────────────────────────────────────────────────────────

class Channel(enum.IntEnum):
    """Logical channels; the value is the handshake byte sent after connect."""

    OUTPUT = 0x01
    COMMAND = 0x02
    CODE = 0x03
    HEXVIEW = 0x04
    COMPLETION = 0x05
    EVAL_CALLBACK = 0x06

    @property
    def handshake(self) -> bytes:
        return bytes([self.value])

    @property
    def inbound(self) -> bool:
        return self not in OUTBOUND_CHANNELS


OUTBOUND_CHANNELS = frozenset({Channel.COMMAND, Channel.CODE})


# ─── Command codes (inbound, per channel) ────────────────────────────────────

class OutputCommand(enum.IntEnum):
    ITERATION_BEGIN = 0x01
    ITERATION_END = 0x02
    ERROR_TEXT = 0x03
    TERMINAL_TEXT = 0x04
    EVAL_TEXT = 0x05
    STYLE_BEGIN = 0x06
    STYLE_END = 0x07


class HexViewCommand(enum.IntEnum):
    ITERATION_BEGIN = 0x01
    ITERATION_END = 0x02
    CLEAR = 0x03
    APPEND = 0x04
    HIGHLIGHT = 0x05


class CompletionCommand(enum.IntEnum):
    ITERATION_BEGIN = 0x01
    ITERATION_END = 0x02
    CANDIDATES = 0x03


class EvalCallbackCommand(enum.IntEnum):
    EVALUATE = 0x01


# ─── Hex view layout ──────────────────────────────────────────────────────────

# xxd-style rows: "00000010: 0011 2233 4455 6677 8899 aabb ccdd eeff  ................"
BYTES_PER_ROW = 16
ADDRESS_WIDTH = 10  # "00000010: "
HEX_PANE_WIDTH = 2 * BYTES_PER_ROW + BYTES_PER_ROW // 2 - 1
ASCII_COLUMN = ADDRESS_WIDTH + HEX_PANE_WIDTH + 2
