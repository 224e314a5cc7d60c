"""Command-line entry point for hexwire."""

import argparse
import sys
from typing import List, Optional

from . import _log
from ._buffer import HexBuffer
from ._errors import HexwireError
from ._hexview import format_rows
from ._output import EvalResult, OutputChannel
from ._protocol import Channel
from ._session import Session
from ._viewport import Viewport, scroll_by_rows, snap_to


def _cmd_tail(args: argparse.Namespace) -> int:
    def on_result(result: EvalResult) -> None:
        if result.text:
            stream = sys.stderr if result.error else sys.stdout
            stream.write(result.text if result.text.endswith("\n") else result.text + "\n")
            stream.flush()

    output = OutputChannel(result_consumer=on_result)
    seen_iterations = 0
    printed = 0
    with Session(args.socket, output=output) as s:
        s.open(Channel.OUTPUT)
        try:
            while s.is_running(Channel.OUTPUT):
                s.poll(0.2)
                text = output.buffer.text
                if len(text) > printed:
                    sys.stdout.write(text[printed:])
                    sys.stdout.flush()
                    printed = len(text)
                seen_iterations = len(output.buffer.regions)
                if args.count and seen_iterations >= args.count:
                    break
        except KeyboardInterrupt:
            pass
    return 0


def _cmd_send(args: argparse.Namespace) -> int:
    with Session(args.socket) as s:
        if args.command == "code":
            s.send_code(args.text)
        else:
            s.send_command(args.text)
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    """Render a local file through the viewport, the way the hex view pages it."""
    with open(args.file, "rb") as f:
        data = f.read()

    buffer = HexBuffer()

    def fetch(start: int, length: int) -> None:
        buffer.clear()
        lo = max(start, 0)
        buffer.append("\n".join(format_rows(data[lo:start + length], lo)))

    viewport = Viewport(args.rows, fetcher=fetch)
    total_rows = -(-len(data) // viewport.bytes_per_row)
    snap_to(viewport, args.offset)
    if viewport.refetch_count == 0:
        fetch(viewport.start_offset, viewport.visible_bytes)
    for _ in range(args.pages):
        sys.stdout.write(buffer.text + "\n")
        scroll_by_rows(viewport, viewport.visible_row_count, total_rows)
        if viewport.start_offset >= len(data):
            break
    return 0


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hexwire", description=__doc__)
    parser.add_argument("--socket", help="daemon socket path (default: $HEXWIRE_SOCKET)")
    parser.add_argument("--log", metavar="LEVEL", help="log level, as $HEXWIRE_LOG")
    sub = parser.add_subparsers(dest="command", required=True)

    tail = sub.add_parser("tail", help="follow the output channel")
    tail.add_argument("--count", type=int, default=0,
                      help="stop after this many iterations (0: run until closed)")
    tail.set_defaults(func=_cmd_tail)

    for name, help_text in (("send", "send one command-channel frame"),
                            ("code", "send one code-channel frame")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("text")
        p.set_defaults(func=_cmd_send)

    dump = sub.add_parser("dump", help="page a local file in hex view layout")
    dump.add_argument("file")
    dump.add_argument("--offset", type=lambda s: int(s, 0), default=0)
    dump.add_argument("--rows", type=int, default=16)
    dump.add_argument("--pages", type=int, default=1)
    dump.set_defaults(func=_cmd_dump)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)
    if args.log and not _log.configure(args.log):
        print(f"hexwire: unknown log level {args.log!r}", file=sys.stderr)
        return 2
    try:
        return args.func(args)
    except HexwireError as e:
        print(f"hexwire: {e}", file=sys.stderr)
        return 1
