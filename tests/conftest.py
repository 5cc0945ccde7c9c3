"""Shared test fixtures for wikimirror."""

import re
import threading
import time
from pathlib import Path

import pytest

from wikimirror.config.models import WikiMirrorConfig
from wikimirror.errors import RenderError

_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def _markdown_to_html(text: str) -> str:
    body = _IMAGE_RE.sub(r'<img src="\2" alt="\1" />', text)
    body = _LINK_RE.sub(r'<a href="\2">\1</a>', body)
    return body


class FakeRenderer:
    """In-process stand-in for pandoc.

    Renders links/images with regexes, records every call, and tracks how
    many renders overlap. Names in ``fail_on`` write a partial file and then
    fail, like a renderer that crashes mid-write.
    """

    def __init__(self, delay: float = 0.0, fail_on: set[str] | None = None, interrupt_on: set[str] | None = None):
        self.delay = delay
        self.fail_on = set(fail_on or ())
        self.interrupt_on = set(interrupt_on or ())
        self.calls: list[dict] = []
        self.events: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.terminated = 0
        self._lock = threading.Lock()

    def render(self, source: Path, output: Path, *, title: str, stylesheet: Path | None = None) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.calls.append({"source": source, "output": output, "title": title, "stylesheet": stylesheet})
            self.events.append(("start", source.name))
        try:
            if self.delay:
                time.sleep(self.delay)
            if source.name in self.interrupt_on:
                raise KeyboardInterrupt
            if source.name in self.fail_on:
                output.write_text("<html><body>partial")
                raise RenderError(source, 64, "pandoc: simulated failure")
            body = _markdown_to_html(source.read_text(encoding="utf-8"))
            css = f'<link rel="stylesheet" href="{stylesheet}" />' if stylesheet else ""
            output.write_text(
                f"<html><head><title>{title}</title>{css}</head><body>\n{body}</body></html>\n",
                encoding="utf-8",
            )
        finally:
            with self._lock:
                self.active -= 1
                self.events.append(("end", source.name))

    def terminate_all(self) -> int:
        self.terminated += 1
        return 0

    def rendered_names(self) -> list[str]:
        return [c["source"].name for c in self.calls]


def make_wiki(root: Path) -> Path:
    """A small wiki with an index, a nested page, an asset, and noise."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "index.md").write_text(
        "title: My Wiki\n\n# Home\n\n[Todo](notes/todo) and [Ideas](ideas.md)\n"
    )
    (root / "ideas.md").write_text("# Ideas\n\nSee [home](index)\n")
    (root / "notes").mkdir()
    (root / "notes" / "todo.md").write_text(
        "# Todo\n\n![diagram](/img/diagram.png)\n[site](https://example.com/todo)\n"
    )
    (root / "img").mkdir()
    (root / "img" / "diagram.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    (root / "build.sh").write_text("#!/bin/sh\n")
    (root / "old.html").write_text("<html></html>")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD.md").write_text("not a page")
    return root


@pytest.fixture
def wiki(tmp_path):
    return make_wiki(tmp_path / "vimwiki")


@pytest.fixture
def scratch(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def config(wiki, scratch):
    return WikiMirrorConfig(
        source_dir=str(wiki),
        output_dir=str(scratch / "vimwikihtml"),
        scratch_root=str(scratch),
        css_file=None,
        dump_dir=str(scratch / "markdowndump"),
        concurrent_jobs=4,
    )


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def output(config):
    return Path(config.output_dir)


@pytest.fixture
def make_renderer():
    """Factory for FakeRenderer with custom delay/failure settings."""
    return FakeRenderer
