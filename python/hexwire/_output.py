"""Output channel state machine: iterations, style stack, eval results."""

from typing import Callable, List, NamedTuple, Optional, Tuple

from . import _codec as codec
from ._buffer import OutputBuffer, StyledRun
from ._dispatch import ChannelHandler
from ._errors import StyleMismatchError
from ._log import log
from ._protocol import Channel, OutputCommand

SEPARATOR = "\n"


class EvalResult(NamedTuple):
    """Evaluation text accumulated over one iteration.

    ``runs`` index into ``text``.
    """

    text: str
    runs: Tuple[StyledRun, ...]
    error: bool


class Iteration:
    """One begin/end bounded span of output-channel activity."""

    __slots__ = ("start", "_eval_parts", "_eval_len", "_eval_runs", "error",
                 "separator_emitted")

    def __init__(self, start: int) -> None:
        self.start = start
        self._eval_parts: List[str] = []
        self._eval_len = 0
        self._eval_runs: List[StyledRun] = []
        self.error = False
        self.separator_emitted = False

    @property
    def eval_text(self) -> str:
        return "".join(self._eval_parts)

    def add_eval(self, text: str, styles: Tuple[str, ...], error: bool) -> None:
        start = self._eval_len
        self._eval_parts.append(text)
        self._eval_len += len(text)
        if styles:
            self._eval_runs.append(StyledRun(start, self._eval_len, styles))
        if error:
            self.error = True

    def result(self) -> EvalResult:
        return EvalResult(self.eval_text, tuple(self._eval_runs), self.error)


def _log_sink(text: str) -> None:
    log.info("%s", text.rstrip("\n"))


class OutputChannel(ChannelHandler):
    """Interprets output-channel frames into an OutputBuffer.

    Terminal text goes to the buffer; eval and error text accumulate into
    the current iteration and are handed to ``result_consumer`` at the
    iteration end.  Without a consumer, eval/error text is mirrored to
    ``fallback_sink`` as it arrives.

    The style stack deliberately survives iteration boundaries: an
    unbalanced style begin leaks into later iterations.
    """

    channel = Channel.OUTPUT
    commands = OutputCommand

    def __init__(
        self,
        buffer: Optional[OutputBuffer] = None,
        result_consumer: Optional[Callable[[EvalResult], None]] = None,
        fallback_sink: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.buffer = buffer if buffer is not None else OutputBuffer()
        self.result_consumer = result_consumer
        self.fallback_sink = fallback_sink if fallback_sink is not None else _log_sink
        self._styles: List[str] = []
        self.iteration = Iteration(self.buffer.end)
        self.last_result: Optional[EvalResult] = None
        super().__init__()

    def _handlers(self):
        return {
            OutputCommand.ITERATION_BEGIN: self._on_iteration_begin,
            OutputCommand.ITERATION_END: self._on_iteration_end,
            OutputCommand.ERROR_TEXT: self._on_error_text,
            OutputCommand.TERMINAL_TEXT: self._on_terminal_text,
            OutputCommand.EVAL_TEXT: self._on_eval_text,
            OutputCommand.STYLE_BEGIN: self._on_style_begin,
            OutputCommand.STYLE_END: self._on_style_end,
        }

    # ─── Style stack ──────────────────────────────────────────────────────

    @property
    def style_stack(self) -> List[str]:
        """Open styles, outermost first."""
        return list(self._styles)

    @property
    def current_styles(self) -> Tuple[str, ...]:
        """Open styles in application order, innermost first."""
        return tuple(reversed(self._styles))

    def push_style(self, name: str) -> None:
        self._styles.append(name)

    def pop_style(self, name: str) -> None:
        top = self._styles[-1] if self._styles else None
        if top != name:
            raise StyleMismatchError(top, name)
        self._styles.pop()

    # ─── Handlers ─────────────────────────────────────────────────────────

    def _on_iteration_begin(self, payload: bytes) -> None:
        self.iteration = Iteration(self.buffer.end)

    def _on_iteration_end(self, payload: bytes) -> None:
        it = self.iteration
        self.buffer.mark_iteration(it.start, self.buffer.end)
        result = it.result()
        self.last_result = result
        it.separator_emitted = False
        if self.result_consumer is not None:
            self.result_consumer(result)
        self.iteration = Iteration(self.buffer.end)

    def _on_terminal_text(self, payload: bytes) -> None:
        text = codec.decode_text(payload)
        if not text:
            return
        it = self.iteration
        if not it.separator_emitted:
            if self.buffer.end > 0 and not self.buffer.ends_with_newline():
                self.buffer.append(SEPARATOR)
            it.separator_emitted = True
        self.buffer.append(text, self.current_styles)

    def _on_eval_text(self, payload: bytes) -> None:
        self._add_eval(codec.decode_text(payload), error=False)

    def _on_error_text(self, payload: bytes) -> None:
        self._add_eval(codec.decode_text(payload), error=True)

    def _add_eval(self, text: str, error: bool) -> None:
        if not text:
            return
        self.iteration.add_eval(text, self.current_styles, error)
        if self.result_consumer is None:
            self.fallback_sink(text)

    def _on_style_begin(self, payload: bytes) -> None:
        self.push_style(codec.decode_text(payload))

    def _on_style_end(self, payload: bytes) -> None:
        self.pop_style(codec.decode_text(payload))
