# =============================================================================
# EVMOS UPGRADE HELPER - COLLABORATOR INTERFACES
# =============================================================================
#
# Narrow interfaces through which the core talks to the outside world.
# Each remote implementation lives in its own module of this package; tests
# substitute in-memory fakes.
#
# ERROR CONTRACT:
# - Retry-eligible failures raise shared.exceptions.TransientError
# - Everything else raises the specific permanent error named per method
#
# =============================================================================

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from models.data_models import BlockSample, KeyEntry, ReleaseInfo
from shared.enums import Network


class ReleaseFetcher(ABC):
    """Looks up releases on the source code host."""

    @abstractmethod
    def fetch(self, tag: str) -> ReleaseInfo:
        """
        Fetch the release with the given tag.

        Raises:
            ReleaseNotFoundError: If the tag does not exist
            TransientError: On a retry-eligible failure
        """
        ...


class BlockSampleFetcher(ABC):
    """Provides recent block headers of a chain."""

    @abstractmethod
    def fetch_recent(self, window_size: int) -> BlockSample:
        """
        Fetch a sample spanning the last `window_size` blocks.

        Raises:
            TransientError: On a retry-eligible failure
        """
        ...


class CompletionClient(ABC):
    """Language model completion endpoint."""

    @abstractmethod
    def complete(self, prompt: str, model: str) -> str:
        """
        Return the model's answer to a single user prompt.

        Raises:
            TransientError: Timeout, rate limit, server error
            FatalCompletionError: Invalid credentials, malformed request
        """
        ...


class KeyringReader(ABC):
    """Lists the keys of a local keyring."""

    @abstractmethod
    def list_keys(self) -> List[KeyEntry]:
        """
        List all keys with their addresses.

        Raises:
            KeyringUnavailableError: If the keyring cannot be read
        """
        ...


class BalanceLookup(ABC):
    """Queries account balances."""

    @abstractmethod
    def balance_of(self, address: str, network: Network) -> Decimal:
        """
        Balance of `address` in the native denom of `network`.

        Raises:
            TransientError: On a retry-eligible failure
        """
        ...


class UpgradeInfoSource(ABC):
    """Builds the binaries manifest passed as --upgrade-info."""

    @abstractmethod
    def upgrade_info(self, release: ReleaseInfo) -> str:
        """
        Upgrade info JSON for the release's binaries.

        Raises:
            ReleaseAssetsError: If the release lacks checksums or binaries
            TransientError: On a retry-eligible failure
        """
        ...
