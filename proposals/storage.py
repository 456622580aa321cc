# =============================================================================
# EVMOS UPGRADE HELPER - ARTIFACT STORAGE
# =============================================================================
#
# Writes the generated artifacts and reads the upgrade configuration back.
#
# FILES (per proposal, in the output directory):
# - proposal-{Network}-{version}.md    proposal description
# - proposal-{Network}-{version}.json  upgrade configuration
# - proposal-{Network}-{version}.sh    submission command
#
# Writes go to a temporary file first and are renamed into place, so a
# failed write never leaves a truncated artifact.
#
# =============================================================================

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from core.schedule import is_valid_upgrade_time
from core.versions import is_valid_version, is_valid_version_for_network
from models.data_models import UpgradeConfig
from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_GLOB = "proposal-*.json"


class FileWriter:
    """Writes text artifacts into one directory."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def path_for(self, name: Union[str, Path]) -> Path:
        path = Path(name)
        return path if path.is_absolute() else self.base_dir / path

    def write(self, name: Union[str, Path], content: str, executable: bool = False) -> Path:
        """
        Write content atomically and return the final path.

        Args:
            name: File name, relative to base_dir unless absolute
            content: Text to write (UTF-8)
            executable: Mark the file executable (shell scripts)
        """
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = path.with_name(path.name + ".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
        if executable:
            os.chmod(temp_path, 0o755)
        os.replace(temp_path, path)

        logger.info(f"Wrote {path}")
        return path


def validate_config(config: UpgradeConfig) -> None:
    """
    Check a loaded upgrade configuration before it is used.

    Raises:
        ConfigurationError: On an invalid version, a weekend upgrade time or
            a missing keyring home directory
    """
    if not is_valid_version_for_network(config.network, config.target_version):
        raise ConfigurationError(
            f"Invalid target version for {config.network.display_name}: {config.target_version}"
        )
    if not is_valid_version(config.previous_version):
        raise ConfigurationError(f"Invalid previous version: {config.previous_version}")
    if not is_valid_upgrade_time(config.upgrade_time):
        raise ConfigurationError(
            f"Upgrade time falls on a weekend: {config.upgrade_time.isoformat()}"
        )
    if not config.home.is_dir():
        raise ConfigurationError(f"Home directory does not exist: {config.home}")


def write_config(config: UpgradeConfig, writer: FileWriter) -> Path:
    return writer.write(config.config_file_name, config.to_json() + "\n")


def read_config(path: Path, validate: bool = True) -> UpgradeConfig:
    """
    Load an upgrade configuration written by generate-proposal.

    Raises:
        ConfigurationError: If the file is missing, not JSON or invalid
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Upgrade config not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Upgrade config {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Upgrade config {path} must be a JSON object")

    config = UpgradeConfig.from_dict(data)
    if validate:
        validate_config(config)
    return config


def find_config(directory: Path) -> Path:
    """
    Return the single proposal config in a directory.

    Raises:
        ConfigurationError: If there is none or more than one
    """
    matches: List[Path] = sorted(Path(directory).glob(CONFIG_GLOB))
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise ConfigurationError(
            f"No {CONFIG_GLOB} found in {directory}. Pass --config explicitly."
        )
    names = ", ".join(p.name for p in matches)
    raise ConfigurationError(f"Multiple upgrade configs found ({names}). Pass --config explicitly.")
