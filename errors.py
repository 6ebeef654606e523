class CacheSimError(Exception):
    """Base class for every error raised by the simulator."""


class ConfigError(CacheSimError):
    """Cache geometry that cannot be simulated."""


class InputSourceError(CacheSimError):
    """The trace could not be opened or read."""


class MalformedRecordError(CacheSimError):
    """A trace line or access record that is not a valid kind/address/size triple."""

    def __init__(self, message: str, lineno: int = None):
        self.lineno = lineno
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


class CacheConsistencyError(CacheSimError):
    """Cache state broke one of its own invariants. Always a bug."""
