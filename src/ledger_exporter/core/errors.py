"""Exception types raised by the exporter core."""


class ClassificationError(ValueError):
    """A line could not be decoded into a known ledger event.

    Attributes:
        reason: Human-readable description of the parse problem.
        line: The offending input line.
    """

    def __init__(self, reason: str, line: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.line = line


class RegistrationError(ValueError):
    """A metric family could not be registered."""


class ConfigurationError(ValueError):
    """Startup configuration is malformed."""
