"""Tests for wikimirror.browser."""

import subprocess
from unittest.mock import patch

import pytest

from wikimirror.browser import open_in_browser
from wikimirror.config.models import BrowserConfig
from wikimirror.errors import BrowserError


@pytest.fixture
def page(tmp_path):
    path = tmp_path / "index.html"
    path.write_text("<html></html>")
    return path


class TestOpenInBrowser:
    def test_launches_configured_command(self, page):
        with patch("wikimirror.browser.subprocess.Popen") as popen:
            open_in_browser(page, BrowserConfig())

        args, kwargs = popen.call_args
        assert args[0] == ["qutebrowser", str(page)]
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] is subprocess.DEVNULL

    def test_command_with_arguments(self, page):
        with patch("wikimirror.browser.subprocess.Popen") as popen:
            open_in_browser(page, BrowserConfig(command="firefox --new-tab"))
        assert popen.call_args[0][0] == ["firefox", "--new-tab", str(page)]

    def test_missing_page(self, tmp_path):
        with patch("wikimirror.browser.subprocess.Popen") as popen:
            with pytest.raises(BrowserError, match="does not exist"):
                open_in_browser(tmp_path / "index.html", BrowserConfig())
        popen.assert_not_called()

    def test_launch_failure(self, page):
        with patch("wikimirror.browser.subprocess.Popen", side_effect=FileNotFoundError("qutebrowser")):
            with pytest.raises(BrowserError, match="Failed to launch"):
                open_in_browser(page, BrowserConfig())

    def test_default_browser(self, page):
        with patch("wikimirror.browser.webbrowser.open", return_value=True) as wb:
            open_in_browser(page, BrowserConfig(command=""))
        wb.assert_called_once_with(page.as_uri())

    def test_no_default_browser(self, page):
        with patch("wikimirror.browser.webbrowser.open", return_value=False):
            with pytest.raises(BrowserError, match="No default browser"):
                open_in_browser(page, BrowserConfig(command=""))
