"""Beacon exception hierarchy."""


class BeaconError(Exception):
    """Base class for errors raised by Beacon itself."""


class RouterContextError(BeaconError):
    """A routing hook was used outside of a mounted router."""


class ExpectedError(Exception):
    """
    Marker base for application errors that should not be reported.

    Subclass it for errors that are part of normal control flow
    (validation failures, not-found lookups). Exception filters still
    propagate these errors; they only skip reporting them.
    """
