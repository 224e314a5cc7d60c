"""Eval-callback channel: best-effort execution of daemon-sent Python."""

from typing import Any, Callable, Dict, Optional

from . import _codec as codec
from ._dispatch import ChannelHandler
from ._log import log
from ._protocol import Channel, EvalCallbackCommand


class EvalCallbackChannel(ChannelHandler):
    """Runs each EVALUATE payload as Python source.

    Failures never reach the protocol layer; they are logged at debug
    level and otherwise dropped.  Pass ``evaluator`` to run payloads some
    other way; ``namespace`` is shared across evaluations.
    """

    channel = Channel.EVAL_CALLBACK
    commands = EvalCallbackCommand

    def __init__(
        self,
        namespace: Optional[Dict[str, Any]] = None,
        evaluator: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.namespace: Dict[str, Any] = namespace if namespace is not None else {}
        self.evaluator = evaluator if evaluator is not None else self._exec
        self.failures = 0
        super().__init__()

    def _handlers(self):
        return {EvalCallbackCommand.EVALUATE: self._on_evaluate}

    def _exec(self, source: str) -> None:
        exec(compile(source, "<hexwire-callback>", "exec"), self.namespace)

    def _on_evaluate(self, payload: bytes) -> None:
        source = codec.decode_text(payload)
        try:
            self.evaluator(source)
        except Exception as e:
            self.failures += 1
            log.debug("eval callback failed: %s", e)
