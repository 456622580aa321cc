# =============================================================================
# EVMOS UPGRADE HELPER - VERSION VALIDATION
# =============================================================================
#
# Versions follow vMAJOR.MINOR.PATCH with an optional -rcN suffix.
# Testnet upgrades must use a release candidate, mainnet upgrades must not.
#
# =============================================================================

import re

from shared.enums import Network

VERSION_PATTERN = re.compile(r"^v\d+\.\d+\.\d+(-rc\d+)*$")

TARGET_VERSION_PATTERNS = {
    Network.LOCAL_NODE: re.compile(r"^v\d+\.\d{1}\.\d+(-rc\d+)*$"),
    Network.TESTNET: re.compile(r"^v\d+\.\d{1}\.\d+-rc\d+$"),
    Network.MAINNET: re.compile(r"^v\d+\.\d{1}\.\d+$"),
}


def is_valid_version(version: str) -> bool:
    """Check that a version follows semantic versioning (vX.Y.Z[-rcN])."""
    return bool(VERSION_PATTERN.match(version))


def is_valid_version_for_network(network: Network, target_version: str) -> bool:
    """Check that a target version fits the release policy of the network."""
    return bool(TARGET_VERSION_PATTERNS[network].match(target_version))
