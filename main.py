"""Entry point for the Teams recording downloader application."""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx

from src.teams_downloader.auth import DeviceCodeAuthenticator
from src.teams_downloader.config import (
    CLIENT_ID,
    LOGGER_NAME,
    MAX_CONCURRENT_REQUESTS,
    REQUEST_TIMEOUT,
    SETTINGS_FILE_NAME,
    TENANT_ID,
)
from src.teams_downloader.downloader import DownloadSelector
from src.teams_downloader.exceptions import GraphAPIError, TeamsDownloaderError
from src.teams_downloader.graph_client import GraphClient
from src.teams_downloader.scanner import DriveScanner
from src.teams_downloader.settings import SettingsStore


@dataclass
class AppConfig:
    """Application configuration."""
    settings_file: str = SETTINGS_FILE_NAME
    output_dir: Optional[str] = None
    save_output_dir: bool = False
    log_level: int = logging.INFO
    max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS
    apply_timestamps: bool = True
    client_id: str = CLIENT_ID
    tenant_id: str = TENANT_ID


class TeamsDownloaderApplication:
    """Main application class for downloading Teams meeting recordings."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.logger = self._setup_logging()

    def _setup_logging(self) -> logging.Logger:
        """Set up logging configuration.

        Returns:
            Configured logger instance.
        """
        logging.basicConfig(
            level=logging.WARNING,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        logger = logging.getLogger(LOGGER_NAME)
        if not logger.handlers:
            logger.addHandler(logging.StreamHandler())
        logger.propagate = False
        logger.setLevel(self.config.log_level)
        return logger

    def resolve_output_root(self, settings: SettingsStore) -> Path:
        """Pick the output directory from the command line or the settings file.

        Args:
            settings: Loaded settings store.

        Returns:
            Absolute output directory.
        """
        if self.config.output_dir:
            if self.config.save_output_dir:
                return settings.set_save_folder(self.config.output_dir)
            return Path(self.config.output_dir).expanduser().resolve()

        return settings.load_save_folder()

    async def run(self) -> None:
        """Run the main application workflow."""
        try:
            settings = SettingsStore(self.config.settings_file, self.logger)
            output_root = self.resolve_output_root(settings)
            self.logger.info(f"Saving recordings to {output_root}")

            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, follow_redirects=True) as http_client:
                authenticator = DeviceCodeAuthenticator(
                    http_client,
                    client_id=self.config.client_id,
                    tenant_id=self.config.tenant_id,
                    logger=self.logger
                )
                client = GraphClient(
                    authenticator,
                    http_client=http_client,
                    max_concurrent_requests=self.config.max_concurrent_requests,
                    logger=self.logger
                )
                selector = DownloadSelector(
                    client,
                    output_root,
                    self.logger,
                    apply_timestamps=self.config.apply_timestamps
                )
                scanner = DriveScanner(client, selector, self.logger)

                try:
                    await scanner.scan_all()
                except GraphAPIError as e:
                    self.logger.error(e.code)
                    self.logger.error(e.message)
                    return

            self.logger.info("Scan complete")

        except TeamsDownloaderError as e:
            self.logger.error(f"Teams downloader error: {e}")
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error: {e}")
            raise


def create_config_from_args(argv: Optional[List[str]] = None) -> AppConfig:
    """Create application configuration from command line arguments.

    Args:
        argv: Arguments to parse. Defaults to ``sys.argv[1:]``.

    Returns:
        Application configuration.

    Raises:
        SystemExit: If arguments are invalid.
    """
    parser = argparse.ArgumentParser(
        description="Download meeting recordings from the drives of your Microsoft Teams.")
    parser.add_argument('--settings', default=SETTINGS_FILE_NAME,
                        help='Path to the settings file (default: %(default)s).')
    parser.add_argument('--output', help='Download into this directory instead of the configured one.')
    parser.add_argument('--save', action='store_true',
                        help='Store the --output directory in the settings file.')
    parser.add_argument('--max-concurrent', type=int, default=MAX_CONCURRENT_REQUESTS,
                        help='Maximum number of simultaneous Graph requests (default: %(default)s).')
    parser.add_argument('--no-timestamps', action='store_true',
                        help='Do not copy the cloud modification time onto downloaded files.')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging.')

    args = parser.parse_args(argv)

    if args.max_concurrent < 1:
        parser.error("--max-concurrent must be at least 1")
    if args.save and not args.output:
        parser.error("--save requires --output")

    return AppConfig(
        settings_file=args.settings,
        output_dir=args.output,
        save_output_dir=args.save,
        log_level=logging.DEBUG if args.verbose else logging.INFO,
        max_concurrent_requests=args.max_concurrent,
        apply_timestamps=not args.no_timestamps,
        client_id=os.getenv('TEAMS_DOWNLOADER_CLIENT_ID') or CLIENT_ID,
        tenant_id=os.getenv('TEAMS_DOWNLOADER_TENANT_ID') or TENANT_ID,
    )


async def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the Teams recording downloader application."""
    try:
        config = create_config_from_args(argv)
        app = TeamsDownloaderApplication(config)
        await app.run()

    except TeamsDownloaderError as e:
        print(f"Application error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}")
        sys.exit(1)


def cli() -> None:
    asyncio.run(main())


if __name__ == '__main__':
    cli()
