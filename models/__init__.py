# =============================================================================
# EVMOS UPGRADE HELPER
# Module: models/__init__.py
# Purpose: Package initialization for data models
# =============================================================================
#
# This module exposes all data structures used throughout the helper.
# No network calls. No file I/O.
#
# =============================================================================

from .data_models import (
    BlockPoint,
    BlockSample,
    HeightEstimate,
    ReleaseAsset,
    ReleaseInfo,
    Summary,
    KeyEntry,
    SigningKey,
    ProposalDocument,
    SubmissionCommand,
    UpgradeConfig,
    proposal_title,
)

__all__ = [
    "BlockPoint",
    "BlockSample",
    "HeightEstimate",
    "ReleaseAsset",
    "ReleaseInfo",
    "Summary",
    "KeyEntry",
    "SigningKey",
    "ProposalDocument",
    "SubmissionCommand",
    "UpgradeConfig",
    "proposal_title",
]
