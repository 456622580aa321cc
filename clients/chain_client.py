# =============================================================================
# EVMOS UPGRADE HELPER - CHAIN REST CLIENT
# =============================================================================
#
# Reads block headers and balances from the Cosmos SDK REST gateway of a
# network.
#
# ENDPOINTS:
# - /cosmos/base/tendermint/v1beta1/blocks/latest
# - /cosmos/base/tendermint/v1beta1/blocks/{height}
# - /cosmos/bank/v1beta1/balances/{address}/by_denom?denom={denom}
#
# BLOCK TIMES:
# Header times are RFC3339 with nanosecond precision
# ("2023-01-04T15:21:14.497612345Z"). Fractional seconds are dropped.
#
# =============================================================================

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from clients.base import BalanceLookup, BlockSampleFetcher
from clients.http import HttpClient
from models.data_models import BlockPoint, BlockSample
from shared.enums import Network
from shared.exceptions import TransientError

logger = logging.getLogger(__name__)

LATEST_BLOCK_PATH = "/cosmos/base/tendermint/v1beta1/blocks/latest"
BLOCK_PATH = "/cosmos/base/tendermint/v1beta1/blocks/{height}"
BALANCE_PATH = "/cosmos/bank/v1beta1/balances/{address}/by_denom"

BLOCK_TIME_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(\.\d+)?(Z|[+-]00:00)$")


def parse_block_time(value: str) -> datetime:
    """
    Parse a header timestamp to an aware UTC datetime, whole seconds only.

    Raises:
        ValueError: If the string is not an RFC3339 timestamp
    """
    # Headers are always UTC ("Z"), only the whole-second prefix is used
    match = BLOCK_TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid block time: {value!r}")
    return datetime.strptime(match.group(1), "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)


def block_point_from_payload(payload: Dict[str, Any]) -> BlockPoint:
    """
    Extract height and time from a GetBlock response.

    Raises:
        TransientError: If the payload lacks a usable header
    """
    try:
        header = payload["block"]["header"]
        return BlockPoint(height=int(header["height"]), timestamp=parse_block_time(header["time"]))
    except (KeyError, TypeError, ValueError) as e:
        raise TransientError(f"Malformed block response: {e}") from e


def sample_heights(latest: int, window_size: int, points: int) -> List[int]:
    """
    Evenly spaced heights from latest - window_size up to latest.

    The window is clamped at height 1 and duplicates are removed, so short
    chains yield fewer points.
    """
    start = max(1, latest - window_size)
    if points < 2 or start >= latest:
        return [latest]
    span = latest - start
    heights = {start + (span * i) // (points - 1) for i in range(points)}
    return sorted(heights)


class ChainRestClient(BlockSampleFetcher, BalanceLookup):
    """Block sample and balance queries against one network's REST gateway."""

    def __init__(
        self,
        network: Network,
        sample_points: int = 2,
        timeout: int = HttpClient.DEFAULT_TIMEOUT,
        http: Optional[HttpClient] = None,
    ):
        self.network = network
        self.sample_points = max(2, sample_points)
        self.http = http or HttpClient(network.rest_url, timeout=timeout)

    def latest_block(self) -> BlockPoint:
        return block_point_from_payload(self.http.get_json(LATEST_BLOCK_PATH))

    def block_at(self, height: int) -> BlockPoint:
        return block_point_from_payload(self.http.get_json(BLOCK_PATH.format(height=height)))

    def fetch_recent(self, window_size: int) -> BlockSample:
        """
        Sample blocks spanning the last window_size blocks.

        The latest block is fetched first. The remaining heights are then
        derived from it, so every point belongs to the same window.
        """
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")

        latest = self.latest_block()
        heights = sample_heights(latest.height, window_size, self.sample_points)

        points = [self.block_at(h) for h in heights if h != latest.height]
        points.append(latest)

        logger.info(
            f"Sampled {len(points)} blocks on {self.network.display_name}: "
            f"{points[0].height} .. {latest.height}"
        )
        return BlockSample(points)

    def balance_of(self, address: str, network: Network) -> Decimal:
        """
        Balance of address in the native denom of network.

        A key without any funds has no balance entry; that counts as zero.

        Raises:
            ValueError: If network is not the network this client queries
            TransientError: If the balance amount is malformed
        """
        if network != self.network:
            raise ValueError(
                f"Client queries {self.network.display_name}, not {network.display_name}"
            )
        payload = self.http.get_json(
            BALANCE_PATH.format(address=address),
            params={"denom": network.denom},
        )
        balance = (payload or {}).get("balance") or {}
        amount = balance.get("amount", "0")
        try:
            return Decimal(amount)
        except (InvalidOperation, TypeError) as e:
            raise TransientError(f"Malformed balance for {address}: {amount!r}") from e
