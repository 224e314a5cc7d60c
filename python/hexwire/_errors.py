"""Exception hierarchy for the hexwire client."""


class HexwireError(Exception):
    """Base exception for all hexwire errors."""
    pass


class ConnectionError(HexwireError):
    """Failed to connect to or communicate with the daemon."""
    pass


class ChannelNotRunningError(ConnectionError):
    """Send attempted on a channel whose connection is not live."""

    def __init__(self, channel):
        self.channel = channel
        name = getattr(channel, "name", channel)
        super().__init__(f"Channel {name} is not running")


class ProtocolError(HexwireError):
    """Wire protocol violation; the connection must be reopened."""
    pass


class FramingError(ProtocolError):
    """Frame shape is inconsistent (bad length, missing NUL terminator)."""
    pass


class UnknownCommandError(ProtocolError):
    """Command byte outside the channel's recognized set."""

    def __init__(self, channel, command: int):
        self.channel = channel
        self.command = command
        name = getattr(channel, "name", channel)
        super().__init__(f"Unknown command 0x{command:02X} on channel {name}")


class StyleMismatchError(ProtocolError):
    """Style end does not match the innermost open style."""

    def __init__(self, expected, got: str):
        self.expected = expected
        self.got = got
        super().__init__(f"Style end {got!r} does not match open style {expected!r}")
