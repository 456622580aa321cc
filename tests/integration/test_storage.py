# =============================================================================
# EVMOS UPGRADE HELPER - ARTIFACT STORAGE TESTS
# =============================================================================

import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from models.data_models import UpgradeConfig
from proposals.storage import FileWriter, find_config, read_config, validate_config, write_config
from shared.enums import Network
from shared.exceptions import ConfigurationError


@pytest.fixture
def config(tmp_path):
    home = tmp_path / "evmosd-home"
    home.mkdir()
    return UpgradeConfig(
        network=Network.MAINNET,
        previous_version="v15.0.0",
        target_version="v16.0.0",
        upgrade_time=datetime(2024, 1, 17, 16, tzinfo=timezone.utc),
        upgrade_height=19_500_000,
        summary="- Added EIP-3855 support",
        home=home,
    )


class TestFileWriter:

    def test_write_relative_to_base_dir(self, tmp_path):
        writer = FileWriter(tmp_path / "out")

        path = writer.write("proposal.md", "# Title\n")

        assert path == tmp_path / "out" / "proposal.md"
        assert path.read_text(encoding="utf-8") == "# Title\n"
        assert not (tmp_path / "out" / "proposal.md.tmp").exists()

    def test_overwrite_replaces_content(self, tmp_path):
        writer = FileWriter(tmp_path)
        writer.write("a.txt", "first")

        writer.write("a.txt", "second")

        assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "second"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_executable_flag(self, tmp_path):
        path = FileWriter(tmp_path).write("submit.sh", "echo hi", executable=True)

        assert os.access(path, os.X_OK)

    def test_absolute_path_kept(self, tmp_path):
        target = tmp_path / "elsewhere" / "x.md"

        assert FileWriter(tmp_path / "out").write(target, "x") == target


class TestConfigRoundTrip:

    def test_write_then_read(self, tmp_path, config):
        path = write_config(config, FileWriter(tmp_path))

        assert path.name == "proposal-Mainnet-v16.0.0.json"
        loaded = read_config(path)
        assert loaded == config

    def test_discussion_link_persisted(self, tmp_path, config):
        linked = config.with_discussion_link("https://commonwealth.im/evmos/discussion/1")
        path = write_config(linked, FileWriter(tmp_path))

        assert read_config(path).discussion_link == "https://commonwealth.im/evmos/discussion/1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            read_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "proposal-Mainnet-v16.0.0.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="not valid JSON"):
            read_config(path)

    def test_missing_field(self, tmp_path, config):
        data = config.to_dict()
        del data["upgrade_height"]
        path = tmp_path / "proposal-Mainnet-v16.0.0.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="upgrade_height"):
            read_config(path)


class TestValidateConfig:

    def test_valid(self, config):
        validate_config(config)

    def test_rc_version_on_mainnet(self, config):
        bad = UpgradeConfig(**{**_fields(config), "target_version": "v16.0.0-rc1"})

        with pytest.raises(ConfigurationError, match="target version"):
            validate_config(bad)

    def test_invalid_previous_version(self, config):
        bad = UpgradeConfig(**{**_fields(config), "previous_version": "15.0"})

        with pytest.raises(ConfigurationError, match="previous version"):
            validate_config(bad)

    def test_weekend_upgrade_time(self, config):
        saturday = datetime(2024, 1, 20, 16, tzinfo=timezone.utc)
        bad = UpgradeConfig(**{**_fields(config), "upgrade_time": saturday})

        with pytest.raises(ConfigurationError, match="weekend"):
            validate_config(bad)

    def test_missing_home(self, config, tmp_path):
        bad = UpgradeConfig(**{**_fields(config), "home": tmp_path / "nope"})

        with pytest.raises(ConfigurationError, match="Home directory"):
            validate_config(bad)

    def test_read_without_validation(self, tmp_path, config):
        bad = UpgradeConfig(**{**_fields(config), "home": tmp_path / "nope"})
        path = write_config(bad, FileWriter(tmp_path))

        assert read_config(path, validate=False).home == tmp_path / "nope"


class TestFindConfig:

    def test_single_config(self, tmp_path):
        (tmp_path / "proposal-Testnet-v16.0.0-rc1.json").write_text("{}", encoding="utf-8")
        (tmp_path / "proposal-Testnet-v16.0.0-rc1.md").write_text("", encoding="utf-8")

        assert find_config(tmp_path).name == "proposal-Testnet-v16.0.0-rc1.json"

    def test_no_config(self, tmp_path):
        with pytest.raises(ConfigurationError, match="--config"):
            find_config(tmp_path)

    def test_multiple_configs(self, tmp_path):
        (tmp_path / "proposal-Testnet-v16.0.0-rc1.json").write_text("{}", encoding="utf-8")
        (tmp_path / "proposal-Mainnet-v16.0.0.json").write_text("{}", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Multiple"):
            find_config(tmp_path)


def _fields(config: UpgradeConfig) -> dict:
    return {
        "network": config.network,
        "previous_version": config.previous_version,
        "target_version": config.target_version,
        "upgrade_time": config.upgrade_time,
        "upgrade_height": config.upgrade_height,
        "summary": config.summary,
        "home": config.home,
    }
