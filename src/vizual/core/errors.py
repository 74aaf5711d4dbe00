class VizualError(Exception):
    """Base class for errors raised by the graph engine."""


class ConfigurationError(VizualError):
    """No usable workspace root."""


class ResolutionError(VizualError):
    """The symbol service could not produce an outline for a file."""


class ProtocolError(VizualError):
    """A debug adapter request failed or is not supported."""

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"{command}: {message}")
        self.command = command
