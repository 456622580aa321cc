# =============================================================================
# EVMOS UPGRADE HELPER - TEMPLATE RENDERER
# =============================================================================
#
# Fills the proposal and command templates in proposals/templates/.
#
# Templates use string.Template placeholders ($name). Rendering is plain
# variable substitution: an unknown placeholder is an error, values are
# inserted as-is and never re-interpreted.
#
# =============================================================================

import logging
from datetime import datetime
from pathlib import Path
from string import Template
from typing import Dict, Optional

from core.schedule import format_upgrade_time
from shared.enums import Network
from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
PROPOSAL_TEMPLATE = "proposal.md"
COMMAND_TEMPLATE = "command.sh"

RELEASE_URL = "https://github.com/{owner}/{repo}/releases/tag/{tag}"
DIFF_URL = "https://github.com/{owner}/{repo}/compare/{previous}..{target}"


def escape_description(text: str) -> str:
    """
    Make Markdown safe to embed in a double-quoted shell argument.

    Newlines become a literal backslash-n so the command stays on its
    continuation lines.
    """
    for char in ("\\", '"', "$", "`"):
        text = text.replace(char, "\\" + char)
    return text.replace("\n", "\\n")


class TemplateRenderer:
    """Renders proposal Markdown and the submission command."""

    def __init__(
        self,
        template_dir: Path = TEMPLATE_DIR,
        github_owner: str = "evmos",
        github_repo: str = "evmos",
    ):
        self.template_dir = Path(template_dir)
        self.github_owner = github_owner
        self.github_repo = github_repo
        self._cache: Dict[str, Template] = {}

    def _template(self, name: str) -> Template:
        if name not in self._cache:
            path = self.template_dir / name
            try:
                self._cache[name] = Template(path.read_text(encoding="utf-8"))
            except FileNotFoundError as e:
                raise ConfigurationError(f"Template not found: {path}") from e
        return self._cache[name]

    def _substitute(self, name: str, values: Dict[str, object]) -> str:
        try:
            return self._template(name).substitute(values)
        except KeyError as e:
            raise ConfigurationError(f"Template {name} uses unknown variable {e}") from e

    def release_url(self, tag: str) -> str:
        return RELEASE_URL.format(owner=self.github_owner, repo=self.github_repo, tag=tag)

    def release_link(self, tag: str) -> str:
        """Markdown link to a release page."""
        return f"[{tag}]({self.release_url(tag)})"

    def render_proposal(
        self,
        name: str,
        network: Network,
        previous_version: str,
        target_version: str,
        upgrade_height: int,
        upgrade_time: datetime,
        summary: str,
        voting_period_hours: int,
        n_blocks: int,
        author: str,
    ) -> str:
        """
        Render the proposal description.

        Pure function of its arguments: identical inputs give identical text.
        """
        values = {
            "author": author,
            "diff_link": DIFF_URL.format(
                owner=self.github_owner,
                repo=self.github_repo,
                previous=previous_version,
                target=target_version,
            ),
            "estimated_time": format_upgrade_time(upgrade_time),
            "features": summary,
            "height": network.block_link(upgrade_height),
            "name": name,
            "n_blocks": f"{n_blocks:,}",
            "network": network.display_name,
            "previous_version": self.release_link(previous_version),
            "version": self.release_link(target_version),
            "voting_time": voting_period_hours,
        }
        return self._substitute(PROPOSAL_TEMPLATE, values)

    def render_command(
        self,
        version: str,
        title: str,
        upgrade_height: int,
        description: str,
        keyring_backend: str,
        key: str,
        fees: str,
        chain_id: str,
        home: Path,
        tm_rpc: str,
        assets: str,
        discussion_link: Optional[str] = None,
    ) -> str:
        """Render the evmosd submit-legacy-proposal command."""
        values = {
            "assets": assets,
            "chain_id": chain_id,
            "commonwealth": discussion_link or "",
            "description": escape_description(description),
            "fees": fees,
            "height": upgrade_height,
            "home": str(home),
            "key": key,
            "keyring": keyring_backend,
            "title": title,
            "tm_rpc": tm_rpc,
            "version": version,
        }
        return self._substitute(COMMAND_TEMPLATE, values)
