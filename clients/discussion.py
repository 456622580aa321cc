# =============================================================================
# EVMOS UPGRADE HELPER - DISCUSSION LINK CHECK
# =============================================================================
#
# Mainnet proposals link to their Commonwealth discussion. The link is only
# checked for its prefix and that the page can be retrieved; the page
# contents are not reliable enough to verify version or height.
#
# =============================================================================

import logging
from typing import Optional

from clients.http import HttpClient
from shared.exceptions import ConfigurationError, UpgradeHelperError

logger = logging.getLogger(__name__)

COMMONWEALTH_PREFIX = "https://commonwealth.im/evmos"


def check_discussion_link(link: str, http: Optional[HttpClient] = None) -> str:
    """
    Validate a discussion link and return it stripped.

    Raises:
        ConfigurationError: If the link has the wrong prefix or cannot be fetched
    """
    link = (link or "").strip()
    if not link.startswith(COMMONWEALTH_PREFIX):
        raise ConfigurationError(
            f"Discussion link must start with {COMMONWEALTH_PREFIX}: {link!r}"
        )

    http = http or HttpClient(max_retries=2)
    try:
        http.get_text(link)
    except UpgradeHelperError as e:
        raise ConfigurationError(f"Discussion link could not be retrieved: {e}") from e

    logger.info(f"Discussion link OK: {link}")
    return link
