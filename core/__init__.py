# =============================================================================
# EVMOS UPGRADE HELPER - CORE MODULE
# =============================================================================
#
# Pure proposal logic. No network calls, no file I/O.
#
# MODULES:
# - height_estimator: Block height at a target time
# - key_selector: Eligible signing keys, ranked
# - release_summarizer: Release notes -> bullet summary, with retries
# - schedule: Default upgrade time and its display format
# - versions: Version format rules per network
#
# =============================================================================

from .height_estimator import estimate, round_half_up, round_to_unit
from .key_selector import select_keys
from .release_summarizer import ModelRegistry, ReleaseSummarizer, build_summary_prompt
from .schedule import (
    format_upgrade_time,
    is_valid_upgrade_time,
    parse_upgrade_time,
    planned_upgrade_time,
)
from .versions import is_valid_version, is_valid_version_for_network

__all__ = [
    "estimate",
    "round_half_up",
    "round_to_unit",
    "select_keys",
    "ModelRegistry",
    "ReleaseSummarizer",
    "build_summary_prompt",
    "format_upgrade_time",
    "is_valid_upgrade_time",
    "parse_upgrade_time",
    "planned_upgrade_time",
    "is_valid_version",
    "is_valid_version_for_network",
]
