# =============================================================================
# EVMOS UPGRADE HELPER - GITHUB RELEASE CLIENT
# =============================================================================
#
# Reads releases of the chain repository from the GitHub REST API.
#
# API REFERENCE:
# Base URL: https://api.github.com
# Endpoint: /repos/{owner}/{repo}/releases/tags/{tag}
#
# AUTH:
# Anonymous requests work but are rate limited. Set GITHUB_TOKEN to raise
# the limit.
#
# UPGRADE INFO:
# The submission command carries download links for the release binaries
# with their checksums, built from the release's checksums.txt asset:
#   {"binaries": {"linux/amd64": "<url>?checksum=<sha256>", ...}}
#
# =============================================================================

import json
import logging
import os
import re
from typing import Any, Dict, Optional

from clients.base import ReleaseFetcher, UpgradeInfoSource
from clients.http import HttpClient
from models.data_models import ReleaseAsset, ReleaseInfo
from shared.exceptions import ReleaseAssetsError, ReleaseNotFoundError, RemoteRequestError, TransientError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
TOKEN_ENV_VAR = "GITHUB_TOKEN"
CHECKSUMS_ASSET = "checksums.txt"

ASSET_PLATFORM_PATTERN = re.compile(r"(Linux|Darwin)_(amd64|arm64)")


def os_key_from_asset_name(name: str) -> Optional[str]:
    """
    Map an asset file name to its platform key.

    Example: "evmos_14.0.0_Linux_amd64.tar.gz" -> "linux/amd64"
    """
    match = ASSET_PLATFORM_PATTERN.search(name)
    if not match:
        return None
    return f"{match.group(1).lower()}/{match.group(2)}"


def parse_checksums(text: str) -> Dict[str, str]:
    """
    Parse a checksums.txt body into {file name: checksum}.

    Lines that do not have exactly two fields are skipped. Windows binaries
    are skipped because submit-legacy-proposal does not accept them.
    """
    checksums = {}
    for line in text.splitlines():
        parts = line.strip().split()
        if len(parts) != 2:
            if line.strip():
                logger.warning(f"Invalid checksum line: {line.strip()}")
            continue
        checksum, name = parts
        if "Windows" in name:
            continue
        checksums[name] = checksum
    return checksums


def build_upgrade_info(release: ReleaseInfo, checksums: Dict[str, str]) -> Dict[str, Any]:
    """Map each supported platform binary to its checksummed download URL."""
    binaries = {}
    for asset in release.assets:
        os_key = os_key_from_asset_name(asset.name)
        if os_key is None:
            continue
        checksum = checksums.get(asset.name)
        if checksum is None:
            continue
        binaries[os_key] = f"{asset.download_url}?checksum={checksum}"
    return {"binaries": binaries}


def upgrade_info_json(info: Dict[str, Any]) -> str:
    """Compact, key-sorted JSON as embedded in the command."""
    return json.dumps(info, sort_keys=True, separators=(",", ":"))


def release_from_payload(payload: Dict[str, Any]) -> ReleaseInfo:
    """
    Convert a GitHub release payload to ReleaseInfo.

    Raises:
        TransientError: If the payload is not a release object
    """
    try:
        assets = tuple(
            ReleaseAsset(name=a["name"], download_url=a["browser_download_url"])
            for a in payload.get("assets") or []
            if a.get("name") and a.get("browser_download_url")
        )
        return ReleaseInfo(
            tag=payload["tag_name"],
            raw_notes=payload.get("body") or "",
            url=payload.get("html_url") or "",
            assets=assets,
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise TransientError(f"Malformed release response: {e!r}") from e


class GitHubReleaseClient(ReleaseFetcher, UpgradeInfoSource):
    """Release lookups for one GitHub repository."""

    def __init__(
        self,
        owner: str = "evmos",
        repo: str = "evmos",
        token: Optional[str] = None,
        timeout: int = HttpClient.DEFAULT_TIMEOUT,
        http: Optional[HttpClient] = None,
    ):
        """
        Initialize the client.

        Args:
            owner: Repository owner
            repo: Repository name
            token: API token, defaults to $GITHUB_TOKEN
            timeout: Request timeout in seconds
            http: Preconfigured HttpClient (tests)
        """
        self.owner = owner
        self.repo = repo

        if http is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            token = token or os.getenv(TOKEN_ENV_VAR)
            if token:
                headers["Authorization"] = f"Bearer {token}"
            http = HttpClient(GITHUB_API_URL, timeout=timeout, headers=headers)
        self.http = http

    def fetch(self, tag: str) -> ReleaseInfo:
        """
        Fetch a release by tag.

        Raises:
            ReleaseNotFoundError: If the tag has no release
            TransientError: If GitHub stays unavailable
        """
        path = f"/repos/{self.owner}/{self.repo}/releases/tags/{tag}"
        try:
            payload = self.http.get_json(path)
        except RemoteRequestError as e:
            if e.status_code == 404:
                raise ReleaseNotFoundError(tag) from e
            raise

        release = release_from_payload(payload)
        logger.info(f"Fetched release {release.tag} ({len(release.assets)} assets)")
        return release

    def fetch_checksums(self, release: ReleaseInfo) -> Dict[str, str]:
        """
        Download and parse the release's checksums.txt.

        Raises:
            ReleaseAssetsError: If the release has no checksums.txt
        """
        asset = next((a for a in release.assets if a.name == CHECKSUMS_ASSET), None)
        if asset is None:
            raise ReleaseAssetsError(f"{CHECKSUMS_ASSET} not found in assets of {release.tag}")
        return parse_checksums(self.http.get_text(asset.download_url))

    def upgrade_info(self, release: ReleaseInfo) -> str:
        """Upgrade info JSON string for the submission command."""
        info = build_upgrade_info(release, self.fetch_checksums(release))
        if not info["binaries"]:
            raise ReleaseAssetsError(f"No supported binaries with checksums in {release.tag}")
        return upgrade_info_json(info)
