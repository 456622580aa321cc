# =============================================================================
# EVMOS UPGRADE HELPER - CLIENT UNIT TESTS
# =============================================================================
#
# Tests cover:
# - HTTP retry policy (mocked requests session)
# - GitHub release parsing, checksums and upgrade info
# - Chain REST block sampling and balances
# - OpenAI SDK error mapping
# - evmosd keyring listing and client.toml
# - Discussion link check
#
# No test touches the network.
#
# =============================================================================

import json
import subprocess
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, Mock

import httpx
import openai
import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from clients.chain_client import ChainRestClient, parse_block_time, sample_heights
from clients.discussion import check_discussion_link
from clients.github_client import (
    GitHubReleaseClient,
    build_upgrade_info,
    os_key_from_asset_name,
    parse_checksums,
    release_from_payload,
    upgrade_info_json,
)
from clients.http import HttpClient
from clients.keyring import EvmosdKeyring, load_client_config, parse_key_list
from clients.openai_client import OpenAICompletionClient
from shared.enums import Network
from shared.exceptions import (
    ConfigurationError,
    FatalCompletionError,
    KeyringUnavailableError,
    ReleaseAssetsError,
    ReleaseNotFoundError,
    RemoteRequestError,
    TransientError,
)
from tests.fakes import make_release


def response(status: int = 200, payload=None, text: str = "") -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.url = "https://example.com"
    resp.text = text
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


def http_with(*responses) -> HttpClient:
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return HttpClient("https://api.example.com", max_retries=3, session=session, sleep=Mock())


# =============================================================================
# HTTP CLIENT
# =============================================================================


class TestHttpClient:

    def test_success(self):
        http = http_with(response(payload={"ok": True}))

        assert http.get_json("/status") == {"ok": True}
        url = http.session.get.call_args[0][0]
        assert url == "https://api.example.com/status"

    def test_retries_server_errors(self):
        http = http_with(response(503), response(429), response(payload={"ok": True}))

        assert http.get_json("/status") == {"ok": True}
        assert http.session.get.call_count == 3
        assert [c.args[0] for c in http._sleep.call_args_list] == [1.0, 2.0]

    def test_client_error_not_retried(self):
        http = http_with(response(404), response(payload={}))

        with pytest.raises(RemoteRequestError) as exc_info:
            http.get_json("/missing")

        assert exc_info.value.status_code == 404
        assert http.session.get.call_count == 1

    def test_exhausted_retries_are_transient(self):
        http = http_with(
            requests.exceptions.Timeout(),
            requests.exceptions.ConnectionError("reset"),
            response(500),
        )

        with pytest.raises(TransientError):
            http.get_text("/flaky")

        assert http.session.get.call_count == 3

    def test_invalid_json_is_transient(self):
        http = http_with(response(200, payload=None, text="<html>"))

        with pytest.raises(TransientError):
            http.get_json("/html")

    def test_absolute_url_passes_through(self):
        http = HttpClient("https://api.example.com", session=MagicMock())

        assert http.url_for("https://other.example.com/x") == "https://other.example.com/x"
        assert http.url_for("a/b") == "https://api.example.com/a/b"


# =============================================================================
# GITHUB
# =============================================================================

CHECKSUMS = """\
35202b28c856d289778010a90fdd6c49c49a451a8d7f60a13b0612d0cd70e178  evmos_16.0.0_Darwin_arm64.tar.gz
427c2c4a37f3e8cf6833388240fcda152a5372d4c5132ca2e3861a7085d35cd0  evmos_16.0.0_Linux_amd64.tar.gz
9999999999999999999999999999999999999999999999999999999999999999  evmos_16.0.0_Windows_amd64.zip
this line is malformed
"""


class TestGitHubHelpers:

    @pytest.mark.parametrize("name,expected", [
        ("evmos_16.0.0_Linux_amd64.tar.gz", "linux/amd64"),
        ("evmos_16.0.0_Darwin_arm64.tar.gz", "darwin/arm64"),
        ("evmos_16.0.0_Windows_amd64.zip", None),
        ("checksums.txt", None),
    ])
    def test_os_key(self, name, expected):
        assert os_key_from_asset_name(name) == expected

    def test_parse_checksums_skips_windows_and_malformed(self):
        checksums = parse_checksums(CHECKSUMS)

        assert set(checksums) == {
            "evmos_16.0.0_Darwin_arm64.tar.gz",
            "evmos_16.0.0_Linux_amd64.tar.gz",
        }

    def test_upgrade_info(self):
        release = make_release()

        info = build_upgrade_info(release, parse_checksums(CHECKSUMS))

        assert info["binaries"]["linux/amd64"].endswith(
            "evmos_16.0.0_Linux_amd64.tar.gz"
            "?checksum=427c2c4a37f3e8cf6833388240fcda152a5372d4c5132ca2e3861a7085d35cd0"
        )
        assert set(info["binaries"]) == {"linux/amd64", "darwin/arm64"}

    def test_upgrade_info_json_is_compact_and_sorted(self):
        text = upgrade_info_json({"binaries": {"linux/amd64": "b", "darwin/arm64": "a"}})

        assert text == '{"binaries":{"darwin/arm64":"a","linux/amd64":"b"}}'

    def test_release_from_payload(self):
        release = release_from_payload({
            "tag_name": "v16.0.0",
            "body": None,
            "html_url": "https://github.com/evmos/evmos/releases/tag/v16.0.0",
            "assets": [{"name": "checksums.txt", "browser_download_url": "https://x/checksums.txt"}],
        })

        assert release.raw_notes == ""
        assert release.assets[0].name == "checksums.txt"

    @pytest.mark.parametrize("payload", [{"name": "v16.0.0"}, ["v16.0.0"], {"tag_name": "v16.0.0", "assets": [None]}])
    def test_malformed_release_payload_is_transient(self, payload):
        with pytest.raises(TransientError, match="Malformed release"):
            release_from_payload(payload)


class TestGitHubReleaseClient:

    def test_fetch(self):
        http = Mock()
        http.get_json.return_value = {"tag_name": "v16.0.0", "body": "notes", "html_url": "u", "assets": []}
        client = GitHubReleaseClient(http=http)

        release = client.fetch("v16.0.0")

        assert release.raw_notes == "notes"
        http.get_json.assert_called_once_with("/repos/evmos/evmos/releases/tags/v16.0.0")

    def test_missing_tag(self):
        http = Mock()
        http.get_json.side_effect = RemoteRequestError("Client error 404", 404)

        with pytest.raises(ReleaseNotFoundError):
            GitHubReleaseClient(http=http).fetch("v99.0.0")

    def test_other_client_errors_propagate(self):
        http = Mock()
        http.get_json.side_effect = RemoteRequestError("Client error 403", 403)

        with pytest.raises(RemoteRequestError):
            GitHubReleaseClient(http=http).fetch("v16.0.0")

    def test_upgrade_info_downloads_checksums(self):
        http = Mock()
        http.get_text.return_value = CHECKSUMS
        release = make_release()

        info = json.loads(GitHubReleaseClient(http=http).upgrade_info(release))

        http.get_text.assert_called_once_with(release.assets[0].download_url)
        assert set(info["binaries"]) == {"linux/amd64", "darwin/arm64"}

    def test_upgrade_info_without_checksums(self):
        release = make_release()
        release = type(release)(release.tag, release.raw_notes, release.url, release.assets[1:])

        with pytest.raises(ReleaseAssetsError):
            GitHubReleaseClient(http=Mock()).upgrade_info(release)

    def test_token_header(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "secret")

        client = GitHubReleaseClient()

        assert client.http.session.headers["Authorization"] == "Bearer secret"


# =============================================================================
# CHAIN REST
# =============================================================================


def block(height: int, time: str) -> dict:
    return {"block": {"header": {"height": str(height), "time": time}}}


class TestChainRestClient:

    def test_parse_block_time_drops_fraction(self):
        assert parse_block_time("2023-01-04T15:21:14.497612345Z") == datetime(
            2023, 1, 4, 15, 21, 14, tzinfo=timezone.utc
        )

    def test_parse_block_time_invalid(self):
        with pytest.raises(ValueError):
            parse_block_time("yesterday")

    def test_sample_heights(self):
        assert sample_heights(100_000, 50_000, 2) == [50_000, 100_000]
        assert sample_heights(100_000, 50_000, 3) == [50_000, 75_000, 100_000]
        assert sample_heights(10, 50_000, 2) == [1, 10]
        assert sample_heights(1, 50_000, 2) == [1]

    def test_fetch_recent(self):
        http = Mock()
        http.get_json.side_effect = [
            block(100_000, "2024-01-08T12:00:00.123Z"),
            block(50_000, "2024-01-05T00:00:00Z"),
        ]
        client = ChainRestClient(Network.MAINNET, http=http)

        sample = client.fetch_recent(50_000)

        assert [p.height for p in sample.points] == [50_000, 100_000]
        assert http.get_json.call_args_list[1].args[0] == "/cosmos/base/tendermint/v1beta1/blocks/50000"

    def test_malformed_block_is_transient(self):
        http = Mock()
        http.get_json.return_value = {"block": None}

        with pytest.raises(TransientError):
            ChainRestClient(Network.MAINNET, http=http).fetch_recent(10)

    def test_balance(self):
        http = Mock()
        http.get_json.return_value = {"balance": {"denom": "atevmos", "amount": "1500000000000000000"}}
        client = ChainRestClient(Network.TESTNET, http=http)

        balance = client.balance_of("evmos1abc", Network.TESTNET)

        assert balance == Decimal("1500000000000000000")
        http.get_json.assert_called_once_with(
            "/cosmos/bank/v1beta1/balances/evmos1abc/by_denom",
            params={"denom": "atevmos"},
        )

    def test_missing_balance_is_zero(self):
        http = Mock()
        http.get_json.return_value = {"balance": None}

        assert ChainRestClient(Network.MAINNET, http=http).balance_of("evmos1", Network.MAINNET) == 0

    def test_balance_for_other_network_rejected(self):
        http = Mock()
        client = ChainRestClient(Network.MAINNET, http=http)

        with pytest.raises(ValueError, match="Mainnet"):
            client.balance_of("evmos1abc", Network.TESTNET)

        http.get_json.assert_not_called()


# =============================================================================
# OPENAI
# =============================================================================

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(cls, status: int):
    return cls("error", response=httpx.Response(status, request=REQUEST), body=None)


def completion(content):
    choice = Mock()
    choice.message.content = content
    result = Mock()
    result.choices = [choice]
    return result


class TestOpenAICompletionClient:

    def test_complete(self):
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = completion("- summary")

        text = OpenAICompletionClient(client=sdk).complete("prompt", "gpt-4o")

        assert text == "- summary"
        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert kwargs["max_tokens"] == 2000

    def test_none_content_is_empty(self):
        sdk = MagicMock()
        sdk.chat.completions.create.return_value = completion(None)

        assert OpenAICompletionClient(client=sdk).complete("p", "gpt-4o") == ""

    @pytest.mark.parametrize("error", [
        openai.APITimeoutError(request=REQUEST),
        openai.APIConnectionError(request=REQUEST),
        status_error(openai.RateLimitError, 429),
        status_error(openai.InternalServerError, 500),
    ])
    def test_transient_errors(self, error):
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = error

        with pytest.raises(TransientError):
            OpenAICompletionClient(client=sdk).complete("p", "gpt-4o")

    @pytest.mark.parametrize("error", [
        status_error(openai.AuthenticationError, 401),
        status_error(openai.PermissionDeniedError, 403),
        status_error(openai.BadRequestError, 400),
        status_error(openai.NotFoundError, 404),
    ])
    def test_fatal_errors(self, error):
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = error

        with pytest.raises(FatalCompletionError):
            OpenAICompletionClient(client=sdk).complete("p", "gpt-4o")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(FatalCompletionError):
            OpenAICompletionClient()


# =============================================================================
# KEYRING
# =============================================================================

KEYS_JSON = json.dumps([
    {"name": "dev0", "type": "local", "address": "evmos1dev0"},
    {"name": "dev1", "type": "local", "address": "evmos1dev1"},
])


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestKeyring:

    def test_list_keys(self, tmp_path):
        runner = Mock(return_value=completed(stdout=KEYS_JSON))
        keyring = EvmosdKeyring(tmp_path, keyring_backend="test", runner=runner)

        keys = keyring.list_keys()

        assert [k.name for k in keys] == ["dev0", "dev1"]
        command = runner.call_args.args[0]
        assert command == [
            "evmosd", "keys", "list",
            "--home", str(tmp_path),
            "--keyring-backend", "test",
            "--output", "json",
        ]

    def test_command_failure(self, tmp_path):
        runner = Mock(return_value=completed(returncode=1, stderr="keyring locked"))

        with pytest.raises(KeyringUnavailableError, match="keyring locked"):
            EvmosdKeyring(tmp_path, runner=runner).list_keys()

    def test_binary_missing(self, tmp_path):
        runner = Mock(side_effect=FileNotFoundError("evmosd"))

        with pytest.raises(KeyringUnavailableError):
            EvmosdKeyring(tmp_path, runner=runner).list_keys()

    def test_malformed_entries_skipped(self):
        keys = parse_key_list('[{"name": "ok", "address": "evmos1ok"}, {"name": "broken"}]')

        assert [k.name for k in keys] == ["ok"]

    def test_invalid_output(self):
        with pytest.raises(KeyringUnavailableError):
            parse_key_list("not json")

    def test_client_config(self, tmp_path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "client.toml").write_text(
            'chain-id = "evmos_9000-1"\n'
            'keyring-backend = "os"\n'
            'output = "text"\n'
            'node = "tcp://localhost:26657"\n'
            'broadcast-mode = "sync"\n',
            encoding="utf-8",
        )

        config = load_client_config(tmp_path)

        assert config.chain_id == "evmos_9000-1"
        assert config.keyring_backend == "os"
        assert config.broadcast_mode == "sync"
        assert EvmosdKeyring.from_home(tmp_path).keyring_backend == "os"

    def test_client_config_missing(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_client_config(tmp_path)

        assert EvmosdKeyring.from_home(tmp_path).keyring_backend == "os"


# =============================================================================
# DISCUSSION LINK
# =============================================================================


class TestDiscussionLink:

    def test_valid_link(self):
        http = Mock()
        link = "https://commonwealth.im/evmos/discussion/14754-evmos-mainnet-v1600-upgrade"

        assert check_discussion_link(f" {link} ", http=http) == link
        http.get_text.assert_called_once_with(link)

    def test_wrong_prefix(self):
        http = Mock()

        with pytest.raises(ConfigurationError):
            check_discussion_link("https://forum.example.com/evmos/1", http=http)

        http.get_text.assert_not_called()

    def test_unreachable(self):
        http = Mock()
        http.get_text.side_effect = TransientError("down")

        with pytest.raises(ConfigurationError):
            check_discussion_link("https://commonwealth.im/evmos/discussion/1", http=http)
