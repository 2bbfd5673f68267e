"""Helpers for presenting the device code sign-in to the user."""

import logging
import webbrowser
from typing import Optional

import pyperclip

from .models import DeviceCodeChallenge

logger = logging.getLogger(__name__)


def open_in_browser(url: str) -> bool:
    """Open a URL in the user's default browser.

    Args:
        url: Address to open.

    Returns:
        True if a browser was launched.
    """
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning(f"Failed to open browser for {url}: {e}")
        return False

    if not opened:
        logger.warning(f"No browser available to open {url}")
    return opened


def copy_to_clipboard(text: str) -> bool:
    """Copy text to the system clipboard.

    Returns:
        True if the clipboard was updated.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning(f"Failed to copy to clipboard: {e}")
        return False
    return True


def present_device_code(challenge: DeviceCodeChallenge, log: Optional[logging.Logger] = None) -> None:
    """Open the verification page, copy the user code and print the instructions."""
    open_in_browser(challenge.verification_uri)
    if copy_to_clipboard(challenge.user_code):
        (log or logger).debug("Device code copied to clipboard")

    message = challenge.message or (
        f"To sign in, open {challenge.verification_uri} and enter the code {challenge.user_code}"
    )
    print(message, flush=True)
