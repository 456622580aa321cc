# =============================================================================
# EVMOS UPGRADE HELPER - CLIENTS
# =============================================================================
#
# Collaborators that talk to the outside world: GitHub, the chain's REST
# gateway, the completion model and the local evmosd keyring.
#
# The core only depends on the interfaces in clients.base.
#
# =============================================================================

from clients.base import (
    BalanceLookup,
    BlockSampleFetcher,
    CompletionClient,
    KeyringReader,
    ReleaseFetcher,
    UpgradeInfoSource,
)
from clients.chain_client import ChainRestClient
from clients.discussion import check_discussion_link
from clients.github_client import GitHubReleaseClient
from clients.http import HttpClient
from clients.keyring import ClientConfig, EvmosdKeyring, load_client_config
from clients.openai_client import OpenAICompletionClient

__all__ = [
    "BalanceLookup",
    "BlockSampleFetcher",
    "CompletionClient",
    "KeyringReader",
    "ReleaseFetcher",
    "UpgradeInfoSource",
    "ChainRestClient",
    "check_discussion_link",
    "GitHubReleaseClient",
    "HttpClient",
    "ClientConfig",
    "EvmosdKeyring",
    "load_client_config",
    "OpenAICompletionClient",
]
