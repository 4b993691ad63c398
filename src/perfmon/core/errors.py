"""Exceptions raised by perfmon components."""


class PerfmonError(Exception):
    """Base class for perfmon errors."""


class DeliveryError(PerfmonError):
    """A batch could not be written to the remote store."""


class ObserverUnavailableError(PerfmonError):
    """The runtime does not provide the requested performance entry type."""

    def __init__(self, entry_type: str) -> None:
        super().__init__(f"performance entry type not supported: {entry_type}")
        self.entry_type = entry_type
