"""Exception taxonomy for the adaptation engine.

These are raised inside the engine and caught at the public API boundary,
where they are logged and turned into a documented fallback value.
"""


class PumpingIronError(Exception):
    """Base class for engine errors."""


class DependencyUnavailable(PumpingIronError):
    """A collaborator (preference store, identity provider) is missing or failed."""


class ValidationError(PumpingIronError, ValueError):
    """Malformed workout, candidate, or preference input."""


class NotFound(PumpingIronError, LookupError):
    """No reference data exists for the requested key."""
