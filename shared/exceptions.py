# =============================================================================
# EVMOS UPGRADE HELPER - EXCEPTIONS
# =============================================================================
#
# EXCEPTION HIERARCHY:
#
# UpgradeHelperError (base)
# ├── EstimationError
# │   ├── InsufficientDataError      - fewer than two block samples
# │   ├── NonPositiveBlockTimeError  - clock skew or malformed sample
# │   ├── TargetInPastError          - upgrade time before latest block
# │   └── CorruptSampleError         - unordered / duplicate sample points
# ├── KeySelectionError
# │   ├── NoEligibleKeyError         - no key holds enough balance
# │   ├── KeyringUnavailableError    - keyring could not be read
# │   └── BalanceLookupFailedError   - balance query kept failing
# ├── SummarizationUnavailableError  - retries exhausted
# ├── UnsupportedModelError          - model id not on the allow-list
# ├── ReleaseNotFoundError           - release tag does not exist
# ├── ReleaseAssetsError             - release lacks checksums for its binaries
# ├── TransientError                 - retry-eligible, never user facing
# ├── FatalCompletionError           - completion call must not be retried
# ├── ConfigurationError             - settings / upgrade config invalid
# ├── RemoteRequestError             - non-retryable HTTP response (4xx)
# └── StepError                      - wraps a child error with its step
#     ├── ProposalStepError
#     └── CommandStepError
#
# Every error except TransientError is permanent: retrying the same call
# with the same input cannot succeed.
#
# =============================================================================

from typing import Optional


class UpgradeHelperError(Exception):
    """
    Base class for all upgrade helper errors.

    Allows the CLI to catch every expected failure in a single except block.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Failure kind shown to the user (the class name without 'Error')."""
        name = type(self).__name__
        return name[:-5] if name.endswith("Error") else name

    @property
    def is_permanent(self) -> bool:
        return True

    def __str__(self) -> str:
        return self.message


# -----------------------------------------------------------------------------
# HEIGHT ESTIMATION
# -----------------------------------------------------------------------------

class EstimationError(UpgradeHelperError):
    """Base class for block height estimation failures."""


class InsufficientDataError(EstimationError):
    """The block sample has fewer than two points."""

    def __init__(self, points: int):
        super().__init__(f"Need at least 2 block samples, got {points}")
        self.points = points


class NonPositiveBlockTimeError(EstimationError):
    """The computed seconds-per-block is zero or negative."""

    def __init__(self, block_time: float):
        super().__init__(f"Computed block time is not positive: {block_time}s")
        self.block_time = block_time


class TargetInPastError(EstimationError):
    """The target time lies before the most recent sampled block."""

    def __init__(self, target_time, latest_time):
        super().__init__(
            f"Target time {target_time.isoformat()} is before "
            f"latest block time {latest_time.isoformat()}"
        )
        self.target_time = target_time
        self.latest_time = latest_time


class CorruptSampleError(EstimationError):
    """Sample points are unordered, duplicated or have decreasing timestamps."""


# -----------------------------------------------------------------------------
# KEY SELECTION
# -----------------------------------------------------------------------------

class KeySelectionError(UpgradeHelperError):
    """Base class for signing key discovery failures."""


class NoEligibleKeyError(KeySelectionError):
    """No key in the keyring holds the minimum balance."""

    def __init__(self, denom: str, min_balance):
        super().__init__(
            f"No keys with a balance of at least {min_balance}{denom} found"
        )
        self.denom = denom
        self.min_balance = min_balance


class KeyringUnavailableError(KeySelectionError):
    """The local keyring could not be read."""


class BalanceLookupFailedError(KeySelectionError):
    """The balance of a key could not be queried."""

    def __init__(self, key_name: str, cause: Exception):
        super().__init__(f"Failed to get balance for key '{key_name}': {cause}")
        self.key_name = key_name
        self.cause = cause


# -----------------------------------------------------------------------------
# SUMMARIZATION / REMOTE CALLS
# -----------------------------------------------------------------------------

class EmptyReleaseNotesError(UpgradeHelperError):
    """The release has no notes to summarize."""


class SummarizationUnavailableError(UpgradeHelperError):
    """All summarization attempts failed with transient errors."""

    def __init__(self, attempts: int, last_error: Optional[Exception]):
        super().__init__(
            f"Summary unavailable after {attempts} attempt(s). "
            f"Last error: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


class UnsupportedModelError(UpgradeHelperError):
    """The requested model id is not on the allow-list."""

    def __init__(self, model: str, allowed):
        super().__init__(
            f"Unsupported model '{model}'. Allowed: {', '.join(sorted(allowed))}"
        )
        self.model = model


class ReleaseNotFoundError(UpgradeHelperError):
    """The release tag does not exist on the source code host."""

    def __init__(self, tag: str):
        super().__init__(f"Release not found: {tag}")
        self.tag = tag


class ReleaseAssetsError(UpgradeHelperError):
    """The release assets cannot be turned into upgrade info."""


class TransientError(UpgradeHelperError):
    """
    A remote call failed in a way that may succeed when retried.

    Timeouts, rate limits, 5xx responses and dropped connections.
    """

    @property
    def is_permanent(self) -> bool:
        return False


class FatalCompletionError(UpgradeHelperError):
    """Completion call rejected for a non-transient reason (credentials, request)."""


class ConfigurationError(UpgradeHelperError):
    """Settings or the persisted upgrade configuration are invalid."""


class RemoteRequestError(UpgradeHelperError):
    """A remote endpoint rejected the request (4xx other than 429)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# -----------------------------------------------------------------------------
# STEP WRAPPERS
# -----------------------------------------------------------------------------

class StepError(UpgradeHelperError):
    """
    Wraps a child error with the step it failed in.

    The child error is kept unchanged on `cause` and chained as __cause__.
    """

    def __init__(self, step, cause: Exception):
        self.step = step
        self.cause = cause
        step_name = getattr(step, "value", step)
        cause_kind = (
            cause.kind if isinstance(cause, UpgradeHelperError)
            else type(cause).__name__
        )
        super().__init__(f"[{step_name}] {cause_kind}: {cause}")

    @property
    def kind(self) -> str:
        if isinstance(self.cause, UpgradeHelperError):
            return self.cause.kind
        return type(self.cause).__name__


class ProposalStepError(StepError):
    """A step of proposal assembly failed."""


class CommandStepError(StepError):
    """A step of submission command generation failed."""
