"""Error types raised by the simulation and its collaborators.

Error codes:
- INVALID_CONFIGURATION: team, bike or strategy data cannot start a race
- UNREACHABLE_TERMINATION: fast-forward loop hit its frame bound unfinished
- STORAGE_FAILURE: race state could not be saved or loaded
- SCORE_VALIDATION: leaderboard submission failed plausibility checks

Formula functions never raise; they clamp out-of-range input instead.
"""

from typing import Any


class CycleSimError(RuntimeError):
    """Base error.

    Attributes:
        code: Error code (e.g., "INVALID_CONFIGURATION")
        details: List of error detail strings
    """

    code = "CYCLESIM_ERROR"

    def __init__(self, details: list[str] | str, code: str | None = None):
        if isinstance(details, str):
            details = [details]
        self.code = code or self.code
        self.details = details
        super().__init__(f"{self.code}: {'; '.join(details)}")


class InvalidConfigurationError(CycleSimError):
    """Raised when a race cannot start from the given configuration."""

    code = "INVALID_CONFIGURATION"


class UnreachableTerminationError(CycleSimError):
    """Raised when the fast-forward loop exhausts its frame budget.

    Attributes:
        partial_result: Result gathered up to the bound
    """

    code = "UNREACHABLE_TERMINATION"

    def __init__(self, details: list[str] | str, partial_result: Any = None):
        super().__init__(details)
        self.partial_result = partial_result


class StorageError(CycleSimError):
    """Raised inside the persistence collaborators; never escapes them."""

    code = "STORAGE_FAILURE"


class ScoreValidationError(CycleSimError):
    """Raised when a leaderboard submission is implausible."""

    code = "SCORE_VALIDATION"
