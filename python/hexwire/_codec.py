"""Frame codec for the daemon wire protocol.

Inbound frame:  [length: u16 LE] [command: u8] [payload: length-2 bytes] [0x00]
Outbound frame: [length: u16 LE] [content: length bytes]

The two directions are deliberately asymmetric: outbound frames carry no
command byte and no terminator.
"""

import enum
import struct
from typing import Iterator, List, Tuple

from . import _protocol as P
from ._errors import FramingError


class DecoderState(enum.Enum):
    AWAITING_LENGTH = "awaiting_length"
    AWAITING_BODY = "awaiting_body"


# ─── Decoder ──────────────────────────────────────────────────────────────────

class FrameDecoder:
    """Incremental inbound frame parser.

    Bytes may arrive in any chunking; coalesced and partial frames are
    handled identically.  The decoder never looks at command values.
    """

    __slots__ = ("_buf", "_state", "_length")

    def __init__(self) -> None:
        self._buf = bytearray()
        self._state = DecoderState.AWAITING_LENGTH
        self._length = 0

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of accumulated bytes not yet consumed as frames."""
        return len(self._buf)

    def reset(self) -> None:
        """Drop all accumulated bytes and return to AWAITING_LENGTH."""
        self._buf.clear()
        self._state = DecoderState.AWAITING_LENGTH
        self._length = 0

    def feed(self, data: bytes) -> Iterator[Tuple[int, bytes]]:
        """Accumulate ``data`` and iterate over every complete frame.

        A frame's bytes are discarded only when the consumer asks for the
        next frame or closes the iterator, so the handler for a frame runs to
        completion while the accumulator still holds it.
        """
        if data:
            self._buf.extend(data)
        return self._drain()

    def decode_all(self, data: bytes) -> List[Tuple[int, bytes]]:
        return list(self.feed(data))

    def _drain(self) -> Iterator[Tuple[int, bytes]]:
        buf = self._buf
        while True:
            if self._state is DecoderState.AWAITING_LENGTH:
                if len(buf) < P.LENGTH_SIZE:
                    return
                length = struct.unpack_from(P.LENGTH_FMT, buf, 0)[0]
                if length < P.MIN_FRAME_LENGTH:
                    self.reset()
                    raise FramingError(f"Frame length {length} is below the minimum of 2")
                del buf[:P.LENGTH_SIZE]
                self._length = length
                self._state = DecoderState.AWAITING_BODY

            length = self._length
            if len(buf) < length:
                return

            if buf[length - 1] != P.FRAME_TERMINATOR:
                self.reset()
                raise FramingError(
                    f"Frame of length {length} is missing its NUL terminator"
                )
            command = buf[0]
            payload = bytes(buf[1:length - 1])

            try:
                yield command, payload
            finally:
                # reset() from the consumer already dropped the frame
                if self._state is DecoderState.AWAITING_BODY:
                    del buf[:length]
                    self._length = 0
                    self._state = DecoderState.AWAITING_LENGTH


# ─── Encoders ─────────────────────────────────────────────────────────────────

def encode_outbound(content: bytes) -> bytes:
    """Frame content for the command/code channels."""
    if len(content) > P.MAX_OUTBOUND_LENGTH:
        raise FramingError(
            f"Outbound content too large: {len(content)} > {P.MAX_OUTBOUND_LENGTH}"
        )
    return struct.pack(P.LENGTH_FMT, len(content)) + content


def encode_frame(command: int, payload: bytes = b"") -> bytes:
    """Build an inbound-shaped frame, as the daemon writes it."""
    length = len(payload) + P.MIN_FRAME_LENGTH
    if length > 0xFFFF:
        raise FramingError(f"Payload too large: {len(payload)}")
    return (
        struct.pack(P.LENGTH_FMT, length)
        + bytes([command & 0xFF])
        + payload
        + bytes([P.FRAME_TERMINATOR])
    )


# ─── Payload helpers ──────────────────────────────────────────────────────────

def decode_text(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


def encode_text(text: str) -> bytes:
    return text.encode("utf-8")


def decode_candidates(payload: bytes) -> Tuple[str, List[str]]:
    """Split a completion payload into (query, candidates).

    The first NUL-delimited entry echoes the original query.
    """
    parts = payload.split(P.CANDIDATE_SEP)
    query = decode_text(parts[0])
    candidates = [decode_text(p) for p in parts[1:]]
    # A trailing separator yields an empty final entry
    if candidates and candidates[-1] == "":
        candidates.pop()
    return query, candidates
