# =============================================================================
# EVMOS UPGRADE HELPER - EVMOSD KEYRING
# =============================================================================
#
# Reads signing keys from the local evmosd keyring and the client
# configuration stored next to it.
#
# HOME DIRECTORY:
# The evmosd home (keyring + config/client.toml) is passed explicitly.
# Nothing here reads a process-wide default.
#
# COMMAND:
#   evmosd keys list --home <home> --keyring-backend <backend> --output json
#
# =============================================================================

import json
import logging
import subprocess
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import List

from clients.base import KeyringReader
from models.data_models import KeyEntry
from shared.exceptions import ConfigurationError, KeyringUnavailableError

logger = logging.getLogger(__name__)

CLIENT_CONFIG_PATH = Path("config") / "client.toml"
DEFAULT_KEYRING_BACKEND = "os"
COMMAND_TIMEOUT = 30  # seconds


@dataclass(frozen=True)
class ClientConfig:
    """Contents of <home>/config/client.toml."""
    chain_id: str
    keyring_backend: str
    output: str
    node: str
    broadcast_mode: str


def load_client_config(home: Path) -> ClientConfig:
    """
    Read the evmosd client configuration of a home directory.

    Raises:
        ConfigurationError: If the file is missing or lacks a field
    """
    path = Path(home) / CLIENT_CONFIG_PATH
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Client config not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid client config {path}: {e}") from e

    try:
        return ClientConfig(
            chain_id=raw["chain-id"],
            keyring_backend=raw["keyring-backend"],
            output=raw["output"],
            node=raw["node"],
            broadcast_mode=raw["broadcast-mode"],
        )
    except KeyError as e:
        raise ConfigurationError(f"Client config {path} is missing {e}") from e


def parse_key_list(output: str) -> List[KeyEntry]:
    """
    Parse `keys list --output json` output.

    Raises:
        KeyringUnavailableError: If the output is not a JSON key list
    """
    try:
        raw = json.loads(output or "[]")
    except json.JSONDecodeError as e:
        raise KeyringUnavailableError(f"Unreadable keyring output: {e}") from e
    if not isinstance(raw, list):
        raise KeyringUnavailableError("Unexpected keyring output, expected a list")

    keys = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("name") or not item.get("address"):
            logger.warning(f"Skipping malformed keyring entry: {item!r}")
            continue
        keys.append(KeyEntry(name=item["name"], address=item["address"]))
    return keys


class EvmosdKeyring(KeyringReader):
    """Key listing through the evmosd binary."""

    def __init__(
        self,
        home: Path,
        keyring_backend: str = DEFAULT_KEYRING_BACKEND,
        binary: str = "evmosd",
        runner=subprocess.run,
    ):
        """
        Initialize the keyring reader.

        Args:
            home: evmosd home directory holding the keyring
            keyring_backend: Keyring backend (os, file, test)
            binary: evmosd executable
            runner: subprocess.run compatible callable (tests)
        """
        self.home = Path(home)
        self.keyring_backend = keyring_backend
        self.binary = binary
        self._run = runner

    @classmethod
    def from_home(cls, home: Path, binary: str = "evmosd") -> "EvmosdKeyring":
        """Reader using the keyring backend configured in client.toml."""
        try:
            backend = load_client_config(home).keyring_backend
        except ConfigurationError as e:
            logger.warning(f"{e}; using keyring backend '{DEFAULT_KEYRING_BACKEND}'")
            backend = DEFAULT_KEYRING_BACKEND
        return cls(home, keyring_backend=backend, binary=binary)

    def command(self) -> List[str]:
        return [
            self.binary, "keys", "list",
            "--home", str(self.home),
            "--keyring-backend", self.keyring_backend,
            "--output", "json",
        ]

    def list_keys(self) -> List[KeyEntry]:
        try:
            result = self._run(
                self.command(),
                capture_output=True,
                text=True,
                timeout=COMMAND_TIMEOUT,
            )
        except FileNotFoundError as e:
            raise KeyringUnavailableError(f"{self.binary} not found on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise KeyringUnavailableError(f"{self.binary} keys list timed out") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise KeyringUnavailableError(
                f"{self.binary} keys list failed ({result.returncode}): {stderr}"
            )

        keys = parse_key_list(result.stdout)
        logger.info(f"Found {len(keys)} keys in keyring at {self.home}")
        return keys
