"""Custom exception hierarchy for the tracker exporter.

Exception tree:
    TrackerExporterError
    +-- ConfigurationError        (target cannot be built from its config)
    |   +-- AuthenticationError   (no cookie for a scraping target)
    +-- FetchError                (the profile page could not be obtained)
    |   +-- TransportError        (network failure reaching the target)
    |   +-- BlockedError          (target answered with a non-2xx status)
    |       +-- ChallengeFailedError  (block persisted through the solver)
    +-- SolverError               (challenge solver failure modes)
    |   +-- SolverServiceError    (solver unreachable or non-2xx)
    |   +-- SolverLogicError      (solver answered status "error")
    |   +-- TargetBlockedError    (solver worked, target still said no)
    +-- PersistenceError          (cookie file could not be written)
"""

from typing import Optional


class TrackerExporterError(Exception):
    """Base exception for all tracker exporter errors."""

    def __init__(
        self,
        message: str,
        *,
        tracker: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.tracker = tracker
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(TrackerExporterError):
    """A tracker's configuration is unusable.

    Fatal to that tracker only -- the exporter keeps serving the others.
    """

    pass


class AuthenticationError(ConfigurationError):
    """A scraping tracker has no cookie to authenticate with."""

    pass


class FetchError(TrackerExporterError):
    """The authenticated profile page could not be obtained."""

    pass


class TransportError(FetchError):
    """Network-level failure (DNS, connect, timeout) reaching the target."""

    pass


class BlockedError(FetchError):
    """Target returned a non-2xx status and no solver could recover it."""

    pass


class ChallengeFailedError(BlockedError):
    """Target blocked the request and the challenge solver failed too.

    The message names both the original HTTP failure and the solver
    outcome; the solver exception is kept on ``solver_error``.
    """

    def __init__(
        self,
        message: str,
        *,
        solver_error: "SolverError",
        tracker: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.solver_error = solver_error
        super().__init__(
            message, tracker=tracker, url=url, status_code=status_code
        )


class SolverError(TrackerExporterError):
    """Base class for challenge solver failures."""

    pass


class SolverServiceError(SolverError):
    """The solver service itself failed: transport error or non-2xx."""

    pass


class SolverLogicError(SolverError):
    """The solver answered with ``status: "error"``."""

    pass


class TargetBlockedError(SolverError):
    """The solver ran but the target still answered with status >= 400."""

    pass


class PersistenceError(TrackerExporterError):
    """A rotated cookie could not be written to its cookie file.

    Never propagated past the scraping client: the rotation is recovered
    on the next successful fetch.
    """

    pass
