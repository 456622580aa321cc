# =============================================================================
# EVMOS UPGRADE HELPER - SIGNING KEY SELECTOR
# =============================================================================
#
# Filters and ranks keyring keys that can pay for a proposal submission.
#
# RULES:
# - Only keys holding the network's native denom are considered
# - A key is eligible if balance >= min_balance
# - Ranking: balance descending, then name ascending
#
# Picking one key out of several candidates is the caller's decision.
# This module never prompts.
#
# =============================================================================

import logging
from decimal import Decimal
from typing import Iterable, List

from models.data_models import SigningKey
from shared.enums import Network
from shared.exceptions import NoEligibleKeyError

logger = logging.getLogger(__name__)


def select_keys(
    keys: Iterable[SigningKey],
    network: Network,
    min_balance: Decimal,
) -> List[SigningKey]:
    """
    Return eligible signing keys in ranked order.

    Args:
        keys: Keys with balances, unique by name
        network: Network whose native denom must be held
        min_balance: Minimum balance (inclusive) in the native denom

    Returns:
        Eligible keys, highest balance first, ties by name

    Raises:
        ValueError: If two keys share a name
        NoEligibleKeyError: If no key is eligible
    """
    keys = list(keys)
    names = [k.name for k in keys]
    if len(names) != len(set(names)):
        raise ValueError("Key names must be unique")

    denom = network.denom
    candidates = [
        k for k in keys
        if k.denom == denom and k.balance >= min_balance
    ]

    logger.debug(
        f"{len(candidates)}/{len(keys)} keys hold at least {min_balance}{denom}"
    )

    if not candidates:
        raise NoEligibleKeyError(denom, min_balance)

    return sorted(candidates, key=lambda k: (-k.balance, k.name))
