# =============================================================================
# EVMOS UPGRADE HELPER - SHARED MODULE
# =============================================================================
#
# Shared vocabulary and infrastructure. No business logic lives here.
#
# CONTENTS:
# - Enums (networks, assembly steps)
# - Exceptions (error taxonomy)
# - Settings (YAML configuration)
# - Logging setup
#
# =============================================================================

from .enums import Network, ProposalStep, CommandStep
from .exceptions import UpgradeHelperError, TransientError
from .logging_config import setup_logging
from .settings import HelperSettings, load_settings

__all__ = [
    "Network",
    "ProposalStep",
    "CommandStep",
    "UpgradeHelperError",
    "TransientError",
    "setup_logging",
    "HelperSettings",
    "load_settings",
]
