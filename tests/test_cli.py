import json
from unittest.mock import AsyncMock

import pytest
from click.testing import CliRunner

from logwatch.cli import cli
from logwatch.core.config import DEFAULT_ADDRESS, Mode
from logwatch.core.errors import StreamError
from logwatch.orchestration import WatchOutput


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # keep a stray ./config.json from leaking into the defaults
    monkeypatch.chdir(tmp_path)
    for var in ("ENDPOINT", "ADDRESS", "TIMEOUT", "SUBSCRIBE", "GETLOGS", "LIMIT", "START_BLOCK", "RETRY_DELAY"):
        monkeypatch.delenv(f"ES_{var}", raising=False)


@pytest.fixture
def mock_watch(monkeypatch) -> AsyncMock:
    watch = AsyncMock(return_value=WatchOutput(mode=Mode.POLL, next_offset=2_000))
    monkeypatch.setattr("logwatch.orchestration.watch", watch)
    return watch


def _config(mock_watch: AsyncMock):
    (config,), _ = mock_watch.call_args
    return config


def test_builds_config_from_options(mock_watch: AsyncMock) -> None:
    result = CliRunner().invoke(
        cli,
        ["watch", "--endpoint", "wss://node.test", "--get-logs", "--limit", "500", "--timeout", "1m30s"],
    )

    assert result.exit_code == 0, result.output
    config = _config(mock_watch)
    assert config.endpoint == "wss://node.test"
    assert config.address == DEFAULT_ADDRESS
    assert config.mode is Mode.POLL
    assert config.page_size == 500
    assert config.timeout_s == 90.0


def test_reads_environment(mock_watch: AsyncMock) -> None:
    env = {
        "ES_ENDPOINT": "ws://env.test",
        "ES_ADDRESS": "0x" + "11" * 20,
        "ES_TIMEOUT": "5s",
        "ES_SUBSCRIBE": "true",
    }
    result = CliRunner().invoke(cli, ["watch"], env=env)

    assert result.exit_code == 0, result.output
    config = _config(mock_watch)
    assert config.endpoint == "ws://env.test"
    assert config.address == "0x" + "11" * 20
    assert config.timeout_s == 5.0
    assert config.mode is Mode.SUBSCRIBE


def test_config_file_with_option_override(mock_watch: AsyncMock, tmp_path) -> None:
    path = tmp_path / "watch.json"
    path.write_text(json.dumps({"endpoint": "ws://file.test", "getlogs": True, "limit": 100, "timeout": "10s"}))

    result = CliRunner().invoke(cli, ["watch", "-c", str(path), "--limit", "250"])

    assert result.exit_code == 0, result.output
    config = _config(mock_watch)
    assert config.endpoint == "ws://file.test"
    assert config.mode is Mode.POLL
    assert config.page_size == 250
    assert config.timeout_s == 10.0


def test_default_config_file_in_cwd(mock_watch: AsyncMock, tmp_path) -> None:
    (tmp_path / "config.json").write_text(json.dumps({"endpoint": "ws://cwd.test", "subscribe": True}))

    result = CliRunner().invoke(cli, ["watch"])

    assert result.exit_code == 0, result.output
    assert _config(mock_watch).endpoint == "ws://cwd.test"


def test_config_file_with_unknown_key_is_rejected(mock_watch: AsyncMock, tmp_path) -> None:
    path = tmp_path / "watch.json"
    path.write_text(json.dumps({"endpoint": "ws://file.test", "topics": ["0x1"]}))

    result = CliRunner().invoke(cli, ["watch", "-c", str(path)])

    assert result.exit_code == 2
    assert "topics" in result.output
    mock_watch.assert_not_called()


def test_both_modes_is_rejected_before_network(mock_watch: AsyncMock) -> None:
    result = CliRunner().invoke(cli, ["watch", "--endpoint", "ws://x", "--subscribe", "--get-logs"])

    assert result.exit_code == 2
    assert "single mode" in result.output
    mock_watch.assert_not_called()


@pytest.mark.parametrize("limit", ["0", "-2000"])
def test_non_positive_page_size_is_rejected_before_network(mock_watch: AsyncMock, limit: str) -> None:
    result = CliRunner().invoke(cli, ["watch", "--endpoint", "ws://x", "--get-logs", "--limit", limit])

    assert result.exit_code == 2
    assert "page size" in result.output
    mock_watch.assert_not_called()


def test_subscribe_over_http_is_rejected_before_network(mock_watch: AsyncMock) -> None:
    result = CliRunner().invoke(cli, ["watch", "--endpoint", "https://node.test", "--subscribe"])

    assert result.exit_code == 2
    assert "wss://" in result.output
    mock_watch.assert_not_called()


def test_invalid_address_is_rejected(mock_watch: AsyncMock) -> None:
    result = CliRunner().invoke(cli, ["watch", "--endpoint", "ws://x", "--subscribe", "--address", "0x1234"])

    assert result.exit_code == 2
    assert "invalid address" in result.output
    mock_watch.assert_not_called()


def test_invalid_duration_is_rejected(mock_watch: AsyncMock) -> None:
    result = CliRunner().invoke(cli, ["watch", "--endpoint", "ws://x", "--timeout", "soon"])

    assert result.exit_code == 2
    mock_watch.assert_not_called()


def test_fatal_error_is_reported_once(mock_watch: AsyncMock) -> None:
    mock_watch.side_effect = StreamError("subscription 0xsub: ConnectionResetError: connection reset")

    result = CliRunner().invoke(cli, ["watch", "--endpoint", "ws://x", "--subscribe"])

    assert result.exit_code == 1
    assert result.output.count("connection reset") == 1


def test_no_mode_does_nothing() -> None:
    result = CliRunner().invoke(cli, ["watch", "--endpoint", "ws://127.0.0.1:9"])

    assert result.exit_code == 0, result.output
    assert "nothing to do" in result.output
