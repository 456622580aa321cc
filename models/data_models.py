# =============================================================================
# EVMOS UPGRADE HELPER
# Module: models/data_models.py
# Purpose: Define all data structures for the proposal pipeline
# =============================================================================
#
# All data models are:
# - Immutable after creation (frozen dataclasses)
# - Created once by the component that owns them and never cached
# - Serializable to JSON where they are persisted
#
# =============================================================================

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from shared.enums import Network
from shared.exceptions import ConfigurationError, CorruptSampleError


# =============================================================================
# BLOCKS
# =============================================================================

@dataclass(frozen=True)
class BlockPoint:
    """A single block height with its header timestamp (UTC)."""
    height: int
    timestamp: datetime


@dataclass(frozen=True)
class BlockSample:
    """
    Ordered sample of recent blocks used for height estimation.

    INVARIANTS (checked on construction):
    - heights are >= 0, strictly ascending, no duplicates
    - timestamps are non-decreasing with height
    A sample violating these is rejected as corrupt.
    """
    points: Tuple[BlockPoint, ...]

    def __post_init__(self):
        # Accept any iterable, store as tuple
        object.__setattr__(self, "points", tuple(self.points))

        previous = None
        for point in self.points:
            if point.height < 0:
                raise CorruptSampleError(f"Negative block height: {point.height}")
            if previous is not None:
                if point.height <= previous.height:
                    raise CorruptSampleError(
                        f"Heights not strictly ascending: {previous.height} -> {point.height}"
                    )
                if point.timestamp < previous.timestamp:
                    raise CorruptSampleError(
                        f"Timestamp decreases between heights {previous.height} and {point.height}"
                    )
            previous = point

    def __len__(self) -> int:
        return len(self.points)

    @property
    def first(self) -> BlockPoint:
        return self.points[0]

    @property
    def last(self) -> BlockPoint:
        return self.points[-1]


@dataclass(frozen=True)
class HeightEstimate:
    """
    Result of a block height estimation.

    rounded_height is predicted_height snapped to the nearest multiple of
    the rounding unit (half-up).
    """
    predicted_height: int
    rounded_height: int
    basis_block_time_seconds: float


# =============================================================================
# RELEASES
# =============================================================================

@dataclass(frozen=True)
class ReleaseAsset:
    """A downloadable file attached to a release."""
    name: str
    download_url: str


@dataclass(frozen=True)
class ReleaseInfo:
    """Release as returned by the source code host. Read-only input."""
    tag: str
    raw_notes: str
    url: str
    assets: Tuple[ReleaseAsset, ...] = ()


@dataclass(frozen=True)
class Summary:
    """Language model summary of release notes."""
    text: str
    model_id: str


# =============================================================================
# KEYS
# =============================================================================

@dataclass(frozen=True)
class KeyEntry:
    """A key as listed by the keyring (no balance yet)."""
    name: str
    address: str


@dataclass(frozen=True)
class SigningKey:
    """A keyring key together with its balance on the target network."""
    name: str
    address: str
    balance: Decimal
    denom: str


# =============================================================================
# ARTIFACTS
# =============================================================================

@dataclass(frozen=True)
class ProposalDocument:
    """
    Assembled proposal description.

    Immutable once assembled. Persisting it is the caller's job.
    """
    title: str
    summary: str
    upgrade_height: int
    upgrade_time: datetime
    release_url: str
    rendered_markdown: str


@dataclass(frozen=True)
class SubmissionCommand:
    """Rendered evmosd command together with the key that will sign it."""
    command_text: str
    chosen_key: SigningKey


# =============================================================================
# UPGRADE CONFIGURATION
# =============================================================================

def proposal_title(network: Network, version: str) -> str:
    """Title of the upgrade proposal, e.g. "Evmos Mainnet v16.0.0 Upgrade"."""
    return f"Evmos {network.display_name} {version} Upgrade"


@dataclass(frozen=True)
class UpgradeConfig:
    """
    Everything decided while generating a proposal.

    Written next to the proposal as JSON and read back when generating the
    submission command, so both artifacts describe the same upgrade.
    """
    network: Network
    previous_version: str
    target_version: str
    upgrade_time: datetime
    upgrade_height: int
    summary: str
    home: Path
    chain_id: str = ""
    proposal_name: str = ""
    voting_period_hours: int = 0
    discussion_link: Optional[str] = None

    # Derived file names, not constructor arguments
    proposal_file_name: str = field(init=False)
    config_file_name: str = field(init=False)
    command_file_name: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "home", Path(self.home))
        if self.upgrade_time.tzinfo is None:
            object.__setattr__(self, "upgrade_time", self.upgrade_time.replace(tzinfo=timezone.utc))
        if not self.chain_id:
            object.__setattr__(self, "chain_id", self.network.chain_id)
        if not self.proposal_name:
            object.__setattr__(self, "proposal_name", proposal_title(self.network, self.target_version))
        if not self.voting_period_hours:
            hours = int(self.network.voting_period.total_seconds() // 3600)
            object.__setattr__(self, "voting_period_hours", hours)

        stem = f"proposal-{self.network.display_name.replace(' ', '')}-{self.target_version}"
        object.__setattr__(self, "proposal_file_name", f"{stem}.md")
        object.__setattr__(self, "config_file_name", f"{stem}.json")
        object.__setattr__(self, "command_file_name", f"{stem}.sh")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "network": self.network.value,
            "previous_version": self.previous_version,
            "target_version": self.target_version,
            "upgrade_time": self.upgrade_time.isoformat(),
            "upgrade_height": self.upgrade_height,
            "summary": self.summary,
            "home": str(self.home),
            "chain_id": self.chain_id,
            "proposal_name": self.proposal_name,
            "voting_period_hours": self.voting_period_hours,
            "discussion_link": self.discussion_link,
            "proposal_file_name": self.proposal_file_name,
            "config_file_name": self.config_file_name,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpgradeConfig":
        """
        Create UpgradeConfig from dictionary.

        Raises:
            ConfigurationError: If a required field is missing or malformed
        """
        try:
            return cls(
                network=Network.parse(data["network"]),
                previous_version=data["previous_version"],
                target_version=data["target_version"],
                upgrade_time=datetime.fromisoformat(data["upgrade_time"]),
                upgrade_height=int(data["upgrade_height"]),
                summary=data["summary"],
                home=Path(data["home"]),
                chain_id=data.get("chain_id", ""),
                proposal_name=data.get("proposal_name", ""),
                voting_period_hours=int(data.get("voting_period_hours", 0)),
                discussion_link=data.get("discussion_link"),
            )
        except KeyError as e:
            raise ConfigurationError(f"Upgrade config is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Upgrade config is malformed: {e}") from e

    def with_discussion_link(self, link: str) -> "UpgradeConfig":
        """Copy of this config with the discussion link set."""
        return replace(self, discussion_link=link)
