from __future__ import annotations


class SkreaderError(Exception):
    """Base class for every error raised while talking to the spectrometer."""


class TransportError(SkreaderError, OSError):
    """USB open/read/write failure, including zero-byte reads and short writes."""


class ProtocolError(SkreaderError):
    """The device answered with something other than the expected frame."""


class DataValidationError(SkreaderError, ValueError):
    """A response is too short or one of its fields cannot be parsed."""


class PreconditionError(SkreaderError):
    """The device is not in a state that allows measuring (ring position, button held)."""


class WaitTimeoutError(SkreaderError, TimeoutError):
    """The device did not become ready within the configured duration."""
