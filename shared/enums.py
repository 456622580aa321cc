# =============================================================================
# EVMOS UPGRADE HELPER - SHARED ENUMS
# =============================================================================
#
# These enums define the shared vocabulary across the system.
#
# NETWORK ENUM:
# Every network-dependent constant (denom, chain id, endpoints, voting
# period) hangs off the Network member so no module has to keep its own
# lookup table.
#
# =============================================================================

from datetime import timedelta
from enum import Enum
from pathlib import Path


class Network(Enum):
    """
    Networks an upgrade can be prepared for.

    LOCAL_NODE: A locally running node used for dry runs
    TESTNET:    Public testnet, upgrades use release candidates
    MAINNET:    Production network, upgrades use final releases
    """
    LOCAL_NODE = "LOCAL_NODE"
    TESTNET = "TESTNET"
    MAINNET = "MAINNET"

    @property
    def display_name(self) -> str:
        """Human-readable name, also used in file names and titles."""
        return _DISPLAY_NAMES[self]

    @property
    def denom(self) -> str:
        """Native (atto) denomination of the network."""
        return "atevmos" if self == Network.TESTNET else "aevmos"

    @property
    def chain_id(self) -> str:
        return "evmos_9001-2" if self == Network.MAINNET else "evmos_9000-4"

    @property
    def rest_url(self) -> str:
        """Cosmos SDK REST gateway."""
        return _REST_URLS[self]

    @property
    def rpc_url(self) -> str:
        """Tendermint RPC endpoint passed as --node to evmosd."""
        return _RPC_URLS[self]

    @property
    def voting_period(self) -> timedelta:
        return _VOTING_PERIODS[self]

    @property
    def default_home(self) -> Path:
        """Default evmosd home holding the keyring for this network."""
        if self == Network.LOCAL_NODE:
            return Path.home() / ".tmp-evmosd"
        return Path.home() / ".evmosd"

    def block_link(self, height: int) -> str:
        """Markdown link to the block on Mintscan, height shown with separators."""
        if self == Network.TESTNET:
            url = f"https://testnet.mintscan.io/evmos-testnet/blocks/{height}"
        else:
            url = f"https://www.mintscan.io/evmos/blocks/{height}"
        return f"[{height:,}]({url})"

    @classmethod
    def parse(cls, value: str) -> "Network":
        """
        Parse a network from its value or display name.

        Accepts "MAINNET", "mainnet", "Mainnet", "local-node", "Local Node".

        Raises:
            ValueError: If the value names no network
        """
        normalized = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Invalid network: {value}") from None

    def __str__(self) -> str:
        return self.display_name


_DISPLAY_NAMES = {
    Network.LOCAL_NODE: "Local Node",
    Network.TESTNET: "Testnet",
    Network.MAINNET: "Mainnet",
}

_REST_URLS = {
    Network.LOCAL_NODE: "http://localhost:1317",
    Network.TESTNET: "https://rest.evmos-testnet.lava.build",
    Network.MAINNET: "https://rest.evmos.lava.build",
}

_RPC_URLS = {
    Network.LOCAL_NODE: "http://localhost:26657",
    Network.TESTNET: "https://tm.evmos-testnet.lava.build:26657",
    Network.MAINNET: "https://tm.evmos.lava.build:26657",
}

_VOTING_PERIODS = {
    Network.LOCAL_NODE: timedelta(hours=1),
    Network.TESTNET: timedelta(hours=12),
    Network.MAINNET: timedelta(hours=120),
}


class ProposalStep(Enum):
    """
    Steps of the proposal assembly state machine.

    FETCH_RELEASE -> {ESTIMATE_HEIGHT, SUMMARIZE} -> RENDER -> DONE
    Any failing step moves the machine to FAILED.
    """
    PENDING = "PENDING"
    FETCH_RELEASE = "FETCH_RELEASE"
    ESTIMATE_HEIGHT = "ESTIMATE_HEIGHT"
    SUMMARIZE = "SUMMARIZE"
    RENDER = "RENDER"
    DONE = "DONE"
    FAILED = "FAILED"


class CommandStep(Enum):
    """Steps of submission command generation."""
    LIST_KEYS = "LIST_KEYS"
    LOOKUP_BALANCES = "LOOKUP_BALANCES"
    SELECT_KEY = "SELECT_KEY"
    FETCH_ASSETS = "FETCH_ASSETS"
    RENDER = "RENDER"
