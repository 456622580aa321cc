# =============================================================================
# EVMOS UPGRADE HELPER - KEY SELECTOR UNIT TESTS
# =============================================================================

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.key_selector import select_keys
from models.data_models import SigningKey
from shared.enums import Network
from shared.exceptions import NoEligibleKeyError


def key(name: str, balance, denom: str = "aevmos") -> SigningKey:
    return SigningKey(name=name, address=f"evmos1{name.lower()}", balance=Decimal(balance), denom=denom)


class TestSelectKeys:

    def test_balance_descending_then_name(self):
        keys = [key("A", 5), key("C", 10), key("B", 10)]

        ranked = select_keys(keys, Network.MAINNET, Decimal("1"))

        assert [k.name for k in ranked] == ["B", "C", "A"]

    def test_min_balance_is_inclusive(self):
        keys = [key("exact", 1), key("below", "0.5"), key("empty", 0)]

        ranked = select_keys(keys, Network.MAINNET, Decimal("1"))

        assert [k.name for k in ranked] == ["exact"]

    def test_other_denom_ignored(self):
        keys = [key("mainnet", 100, "aevmos"), key("testnet", 5, "atevmos")]

        ranked = select_keys(keys, Network.TESTNET, Decimal("1"))

        assert [k.name for k in ranked] == ["testnet"]

    def test_no_eligible_key(self):
        keys = [key("A", 0), key("B", 0)]

        with pytest.raises(NoEligibleKeyError) as exc_info:
            select_keys(keys, Network.MAINNET, Decimal("1"))

        assert exc_info.value.denom == "aevmos"

    def test_empty_keyring(self):
        with pytest.raises(NoEligibleKeyError):
            select_keys([], Network.LOCAL_NODE, Decimal("1"))

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            select_keys([key("A", 1), key("A", 2)], Network.MAINNET, Decimal("1"))

    def test_large_balances_compared_exactly(self):
        keys = [
            key("small", "100000000000000000000"),
            key("large", "100000000000000000001"),
        ]

        ranked = select_keys(keys, Network.MAINNET, Decimal("1"))

        assert [k.name for k in ranked] == ["large", "small"]
