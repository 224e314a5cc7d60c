"""Completion channel: symbol-completion candidate lists."""

from typing import Callable, List, Optional

from . import _codec as codec
from ._dispatch import ChannelHandler
from ._protocol import Channel, CompletionCommand


class CompletionChannel(ChannelHandler):
    channel = Channel.COMPLETION
    commands = CompletionCommand

    def __init__(self, consumer: Optional[Callable[[List[str]], None]] = None) -> None:
        self.consumer = consumer
        self.last_query: Optional[str] = None
        self.candidates: List[str] = []
        super().__init__()

    def _handlers(self):
        return {
            CompletionCommand.ITERATION_BEGIN: self._noop,
            CompletionCommand.ITERATION_END: self._noop,
            CompletionCommand.CANDIDATES: self._on_candidates,
        }

    def _on_candidates(self, payload: bytes) -> None:
        query, candidates = codec.decode_candidates(payload)
        self.last_query = query
        self.candidates = candidates
        if self.consumer is not None:
            self.consumer(list(candidates))
