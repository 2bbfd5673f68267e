"""Unit tests for the application entry point."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from main import AppConfig, TeamsDownloaderApplication, create_config_from_args, main
from src.teams_downloader.config import CLIENT_ID, MAX_CONCURRENT_REQUESTS
from src.teams_downloader.exceptions import AuthenticationError, GraphAPIError
from src.teams_downloader.settings import SettingsStore

pytestmark = pytest.mark.unit


class TestCreateConfigFromArgs:
    """Test cases for command line parsing."""

    def test_defaults(self, monkeypatch):
        """Test the defaults when no arguments are given."""
        monkeypatch.delenv("TEAMS_DOWNLOADER_CLIENT_ID", raising=False)

        config = create_config_from_args([])

        assert config.settings_file == "Settings.ini"
        assert config.output_dir is None
        assert config.log_level == logging.INFO
        assert config.max_concurrent_requests == MAX_CONCURRENT_REQUESTS
        assert config.apply_timestamps is True
        assert config.client_id == CLIENT_ID

    def test_overrides(self, monkeypatch):
        """Test every option is carried into the configuration."""
        monkeypatch.setenv("TEAMS_DOWNLOADER_CLIENT_ID", "my-app")
        monkeypatch.setenv("TEAMS_DOWNLOADER_TENANT_ID", "contoso")

        config = create_config_from_args([
            "--settings", "custom.ini", "--output", "/tmp/rec", "--save",
            "--max-concurrent", "8", "--no-timestamps", "--verbose",
        ])

        assert config.settings_file == "custom.ini"
        assert config.output_dir == "/tmp/rec"
        assert config.save_output_dir is True
        assert config.max_concurrent_requests == 8
        assert config.apply_timestamps is False
        assert config.log_level == logging.DEBUG
        assert config.client_id == "my-app"
        assert config.tenant_id == "contoso"

    def test_invalid_concurrency(self):
        """Test a concurrency below one is rejected."""
        with pytest.raises(SystemExit):
            create_config_from_args(["--max-concurrent", "0"])

    def test_save_requires_output(self):
        """Test --save without --output is rejected."""
        with pytest.raises(SystemExit):
            create_config_from_args(["--save"])


class TestTeamsDownloaderApplication:
    """Test cases for TeamsDownloaderApplication class."""

    def test_output_override(self, app_config, temp_directory):
        """Test --output wins over the settings file without changing it."""
        app = TeamsDownloaderApplication(app_config)
        settings = SettingsStore(app_config.settings_file, app.logger)

        output_root = app.resolve_output_root(settings)

        assert output_root == Path(app_config.output_dir).resolve()
        assert settings.get("SaveFolder") is None

    def test_output_override_saved(self, app_config):
        """Test --output --save stores the directory."""
        app_config.save_output_dir = True
        app = TeamsDownloaderApplication(app_config)
        settings = SettingsStore(app_config.settings_file, app.logger)

        app.resolve_output_root(settings)

        assert settings.get("SaveFolder") == str(Path(app_config.output_dir).resolve())

    def test_output_from_settings(self, app_config, temp_directory):
        """Test the settings file is used without --output."""
        app_config.output_dir = None
        Path(app_config.settings_file).write_text(f"[Main]\nSaveFolder = {temp_directory}\n", encoding="utf-8")
        app = TeamsDownloaderApplication(app_config)

        output_root = app.resolve_output_root(SettingsStore(app_config.settings_file, app.logger))

        assert output_root == Path(temp_directory).resolve()

    @pytest.mark.asyncio
    async def test_run_wires_components(self, app_config):
        """Test run builds the client, selector and scanner and scans."""
        app = TeamsDownloaderApplication(app_config)

        with patch("main.DriveScanner") as MockScanner, patch("main.DownloadSelector") as MockSelector:
            MockScanner.return_value.scan_all = AsyncMock()
            await app.run()

        MockScanner.return_value.scan_all.assert_awaited_once()
        assert MockSelector.call_args[0][1] == Path(app_config.output_dir).resolve()
        assert MockSelector.call_args[1]["apply_timestamps"] is True

    @pytest.mark.asyncio
    async def test_provider_error_ends_normally(self, app_config):
        """Test a Graph error listing teams is logged and the run ends."""
        app = TeamsDownloaderApplication(app_config)
        error = GraphAPIError("Access denied", status_code=403, code="accessDenied")

        with patch("main.DriveScanner") as MockScanner, \
                patch.object(app.logger, "error") as mock_error:
            MockScanner.return_value.scan_all = AsyncMock(side_effect=error)
            await app.run()

        mock_error.assert_any_call("accessDenied")
        mock_error.assert_any_call("Access denied")

    @pytest.mark.asyncio
    async def test_authentication_error_propagates(self, app_config):
        """Test a failed sign-in is raised to the caller."""
        app = TeamsDownloaderApplication(app_config)

        with patch("main.DriveScanner") as MockScanner:
            MockScanner.return_value.scan_all = AsyncMock(side_effect=AuthenticationError("declined"))
            with pytest.raises(AuthenticationError):
                await app.run()


class TestMain:
    """Test cases for the main coroutine."""

    @pytest.mark.asyncio
    async def test_application_error_exits(self):
        """Test application errors exit with status 1."""
        with patch("main.TeamsDownloaderApplication") as MockApp, patch("builtins.print") as mock_print:
            MockApp.return_value.run = AsyncMock(side_effect=AuthenticationError("declined"))
            with pytest.raises(SystemExit) as exc_info:
                await main(["--output", "/tmp/out"])

        assert exc_info.value.code == 1
        mock_print.assert_called_once_with("Application error: declined")

    @pytest.mark.asyncio
    async def test_successful_run(self):
        """Test a successful run returns normally."""
        with patch("main.TeamsDownloaderApplication") as MockApp:
            MockApp.return_value.run = AsyncMock()
            await main(["--output", "/tmp/out"])

        MockApp.return_value.run.assert_awaited_once()
