"""
Tests for server startup: key loading and exit codes.
"""

import json
from pathlib import Path
from typing import Iterator
from unittest.mock import patch

import pytest

import config
import server
from adapters.services import clear_service_cache


@pytest.fixture(autouse=True)
def fresh_services() -> Iterator[None]:
    clear_service_cache()
    # Keep the stderr handler off the shared "gdocs" logger
    with patch("server.configure_logging"):
        yield
    clear_service_cache()


class TestMain:
    """Tests for server.main()."""

    def test_missing_key_env_exits_1(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
        monkeypatch.delenv(config.KEY_PATH_ENV, raising=False)

        with patch.object(server.mcp, "run") as run, pytest.raises(SystemExit) as exc_info:
            server.main()

        assert exc_info.value.code == 1
        assert config.KEY_PATH_ENV in capsys.readouterr().err
        run.assert_not_called()

    def test_unparseable_key_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture, tmp_path: Path,
    ) -> None:
        bad = tmp_path / "key.json"
        bad.write_text("not json")
        monkeypatch.setenv(config.KEY_PATH_ENV, str(bad))

        with patch.object(server.mcp, "run") as run, pytest.raises(SystemExit) as exc_info:
            server.main()

        assert exc_info.value.code == 1
        assert "Failed to parse" in capsys.readouterr().err
        run.assert_not_called()

    def test_bad_private_key_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, key_info: dict,
    ) -> None:
        key_info["private_key"] = "garbage"
        path = tmp_path / "key.json"
        path.write_text(json.dumps(key_info))
        monkeypatch.setenv(config.KEY_PATH_ENV, str(path))

        with patch.object(server.mcp, "run"), pytest.raises(SystemExit) as exc_info:
            server.main()

        assert exc_info.value.code == 1

    def test_valid_key_starts_server(self, monkeypatch: pytest.MonkeyPatch, key_file: Path) -> None:
        monkeypatch.setenv(config.KEY_PATH_ENV, str(key_file))

        with patch.object(server.mcp, "run") as run, patch("server.signal.signal") as install:
            server.main()

        run.assert_called_once_with()
        assert install.call_count == 2
