"""Instrument error taxonomy."""


class InstrumentError(Exception):
    """Base class for all instrument errors."""


class RangeError(InstrumentError, ValueError):
    """A voltage or current set-point is outside the instrument's limits."""


class InvalidArgumentError(InstrumentError, ValueError):
    """An argument is not one of the values the instrument supports."""


class InstrumentFault(InstrumentError, RuntimeError):
    """An instrument operation failed (communication, not connected, ...)."""
