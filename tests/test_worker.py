"""Tests for the conversion worker, title extraction, and pandoc adapter."""

import logging
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from wikimirror.config.models import RendererConfig
from wikimirror.converter import (
    ConversionWorker,
    PandocRenderer,
    WorkItem,
    artifact_path_for,
    convert_single_file,
    extract_title,
    is_valid_filename,
    strip_markdown_suffix,
)
from wikimirror.errors import (
    ConversionError,
    InvalidFilenameError,
    RenderError,
    WikiMirrorError,
)
from wikimirror.transform import default_link_pipeline


def _item(tmp_path: Path, name: str = "todo.md.old", text: str = "# Todo\n") -> WorkItem:
    snapshot = tmp_path / name
    snapshot.write_text(text)
    return WorkItem(rel_path=name[: -len(".old")], snapshot_path=snapshot, artifact_path=artifact_path_for(snapshot))


# ===========================================================================
# Path and title helpers
# ===========================================================================


class TestHelpers:
    @pytest.mark.parametrize(
        "name, expected",
        [("notes.md.old", "notes"), ("notes.md", "notes"), ("notes.txt", "notes.txt")],
    )
    def test_strip_markdown_suffix(self, name, expected):
        assert strip_markdown_suffix(name) == expected

    def test_artifact_path_keeps_directory(self):
        assert artifact_path_for(Path("/out/notes/todo.md.old")) == Path("/out/notes/todo.html")

    def test_title_from_title_line(self, tmp_path):
        f = tmp_path / "page.md.old"
        f.write_text("---\ntitle: Project Plan\n---\n# Heading\n")
        assert extract_title(f) == "Project Plan"

    def test_title_strips_quotes(self, tmp_path):
        f = tmp_path / "page.md.old"
        f.write_text('title: "Quoted: Title"\n')
        assert extract_title(f) == "Quoted: Title"

    def test_title_first_match_wins(self, tmp_path):
        f = tmp_path / "page.md.old"
        f.write_text("intro\ntitle: First\ntitle: Second\n")
        assert extract_title(f) == "First"

    def test_title_falls_back_to_filename(self, tmp_path):
        f = tmp_path / "meeting-notes.md.old"
        f.write_text("# Just a heading\n")
        assert extract_title(f) == "meeting-notes"

    def test_indented_title_not_matched(self, tmp_path):
        f = tmp_path / "page.md.old"
        f.write_text("  title: nested\n")
        assert extract_title(f) == "page"

    def test_empty_title_falls_back(self, tmp_path):
        f = tmp_path / "page.md.old"
        f.write_text("title:\n")
        assert extract_title(f) == "page"

    @pytest.mark.parametrize("name, ok", [("todo.md", True), ("my notes.md", False), ("a;rm.md", False)])
    def test_valid_filename(self, name, ok):
        assert is_valid_filename(name) is ok


# ===========================================================================
# ConversionWorker
# ===========================================================================


class TestConversionWorker:
    def test_publishes_artifact(self, tmp_path, renderer):
        item = _item(tmp_path, text="title: Tasks\n\n[next](later)\n")
        result = ConversionWorker(renderer).convert(item)

        assert item.artifact_path.is_file()
        assert result.title == "Tasks"
        assert result.artifact_path == str(item.artifact_path)
        assert not (tmp_path / "todo.html.tmp").exists()
        # Renderer writes to the temp path, never the final one.
        assert renderer.calls[0]["output"] == tmp_path / "todo.html.tmp"

    def test_pipeline_applied_before_publish(self, tmp_path, renderer):
        item = _item(tmp_path, text="[next](later) ![d](/img/d.png)\n")
        ConversionWorker(renderer, pipeline=default_link_pipeline("/tmp/site")).convert(item)

        html = item.artifact_path.read_text()
        assert 'href="later.html"' in html
        assert 'src="/tmp/site/img/d.png"' in html

    def test_no_pipeline_leaves_links(self, tmp_path, renderer):
        item = _item(tmp_path, text="[next](later)\n")
        ConversionWorker(renderer).convert(item)
        assert 'href="later"' in item.artifact_path.read_text()

    def test_existing_stylesheet_passed(self, tmp_path, renderer):
        css = tmp_path / "style.css"
        css.write_text("body {}")
        ConversionWorker(renderer, stylesheet=css).convert(_item(tmp_path))
        assert renderer.calls[0]["stylesheet"] == css

    def test_missing_stylesheet_skipped_with_warning(self, tmp_path, renderer, caplog):
        with caplog.at_level(logging.WARNING, logger="wikimirror"):
            worker = ConversionWorker(renderer, stylesheet=tmp_path / "missing.css")
        worker.convert(_item(tmp_path))

        assert renderer.calls[0]["stylesheet"] is None
        assert "not found" in caplog.text

    def test_creates_output_directory(self, tmp_path, renderer):
        snapshot = tmp_path / "src" / "a.md.old"
        snapshot.parent.mkdir()
        snapshot.write_text("# A\n")
        artifact = tmp_path / "out" / "deep" / "a.html"
        ConversionWorker(renderer).convert(WorkItem("a.md", snapshot, artifact))
        assert artifact.is_file()

    def test_render_failure_keeps_previous_artifact(self, tmp_path, make_renderer):
        renderer = make_renderer(fail_on={"todo.md.old"})
        item = _item(tmp_path)
        item.artifact_path.write_text("previous version")

        with pytest.raises(ConversionError) as exc_info:
            ConversionWorker(renderer).convert(item)

        assert exc_info.value.step == "render"
        assert isinstance(exc_info.value.__cause__, RenderError)
        assert item.artifact_path.read_text() == "previous version"
        assert not (tmp_path / "todo.html.tmp").exists()

    def test_render_failure_without_previous_artifact(self, tmp_path, make_renderer):
        renderer = make_renderer(fail_on={"todo.md.old"})
        item = _item(tmp_path)

        with pytest.raises(ConversionError):
            ConversionWorker(renderer).convert(item)
        assert not item.artifact_path.exists()

    def test_rewrite_failure(self, tmp_path, renderer):
        pipeline = MagicMock()
        pipeline.apply.side_effect = ValueError("bad regex")
        item = _item(tmp_path)

        with pytest.raises(ConversionError) as exc_info:
            ConversionWorker(renderer, pipeline=pipeline).convert(item)

        assert exc_info.value.step == "rewrite"
        assert not item.artifact_path.exists()
        assert not (tmp_path / "todo.html.tmp").exists()

    def test_publish_failure(self, tmp_path, renderer):
        item = _item(tmp_path)
        with patch("wikimirror.converter.worker.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(ConversionError) as exc_info:
                ConversionWorker(renderer).convert(item)
        assert exc_info.value.step == "publish"
        assert not item.artifact_path.exists()

    def test_conversion_error_exit_code(self):
        err = ConversionError(Path("x.md.old"), "render", RuntimeError("boom"))
        assert int(err.exit_code) == 3
        assert "x.md.old" in str(err)


# ===========================================================================
# PandocRenderer
# ===========================================================================


def _fake_proc(returncode: int = 0, stderr: str = "") -> MagicMock:
    proc = MagicMock(spec=subprocess.Popen)
    proc.communicate.return_value = ("", stderr)
    proc.returncode = returncode
    proc.poll.return_value = None
    return proc


class TestPandocRenderer:
    def test_build_command_with_stylesheet(self):
        cmd = PandocRenderer().build_command(
            Path("/o/a.md.old"), Path("/o/a.html.tmp"), title="A", stylesheet=Path("/s.css")
        )
        assert cmd == [
            "pandoc", "-f", "markdown", "-s", "--css=/s.css",
            "--metadata", "title=A", "/o/a.md.old", "-o", "/o/a.html.tmp",
        ]

    def test_build_command_without_stylesheet_and_extra_args(self):
        renderer = PandocRenderer(RendererConfig(command="pandoc3", extra_args=("--toc",)))
        cmd = renderer.build_command(Path("a.md"), Path("a.html"), title="T")
        assert cmd == ["pandoc3", "-f", "markdown", "-s", "--metadata", "title=T", "--toc", "a.md", "-o", "a.html"]

    def test_render_success(self):
        with patch("wikimirror.converter.renderer.subprocess.Popen", return_value=_fake_proc()) as popen:
            PandocRenderer().render(Path("a.md"), Path("a.html"), title="A")
        assert popen.call_args.args[0][0] == "pandoc"

    def test_render_nonzero_exit_raises(self):
        proc = _fake_proc(returncode=64, stderr="pandoc: unknown option\n")
        with patch("wikimirror.converter.renderer.subprocess.Popen", return_value=proc):
            with pytest.raises(RenderError) as exc_info:
                PandocRenderer().render(Path("a.md"), Path("a.html"), title="A")
        assert exc_info.value.returncode == 64
        assert "unknown option" in str(exc_info.value)

    def test_render_missing_executable_raises(self):
        with patch("wikimirror.converter.renderer.subprocess.Popen", side_effect=FileNotFoundError("pandoc")):
            with pytest.raises(RenderError) as exc_info:
                PandocRenderer().render(Path("a.md"), Path("a.html"), title="A")
        assert exc_info.value.returncode is None

    def test_terminate_all_signals_live_processes(self):
        renderer = PandocRenderer()
        live, done = _fake_proc(), _fake_proc()
        done.poll.return_value = 0
        renderer._procs.update({live, done})

        assert renderer.terminate_all() == 1
        live.terminate.assert_called_once()
        done.terminate.assert_not_called()

    def test_finished_process_untracked(self):
        renderer = PandocRenderer()
        with patch("wikimirror.converter.renderer.subprocess.Popen", return_value=_fake_proc()):
            renderer.render(Path("a.md"), Path("a.html"), title="A")
        assert renderer._procs == set()

    def test_render_after_terminate_all_never_starts(self):
        renderer = PandocRenderer()
        renderer.terminate_all()
        with patch("wikimirror.converter.renderer.subprocess.Popen") as popen:
            with pytest.raises(RenderError, match="cancelled"):
                renderer.render(Path("a.md"), Path("a.html"), title="A")
        popen.assert_not_called()

    def test_process_started_during_sweep_is_terminated(self):
        renderer = PandocRenderer()
        proc = _fake_proc(returncode=-15)

        def start_then_cancel(*args, **kwargs):
            # terminate_all runs between the cancelled check and registration.
            renderer.terminate_all()
            return proc

        with patch("wikimirror.converter.renderer.subprocess.Popen", side_effect=start_then_cancel):
            with pytest.raises(RenderError):
                renderer.render(Path("a.md"), Path("a.html"), title="A")
        proc.terminate.assert_called_once()


# ===========================================================================
# Single-file conversion
# ===========================================================================


class TestConvertSingleFile:
    def test_converts_into_dump_dir(self, tmp_path, renderer):
        md = tmp_path / "notes.md"
        md.write_text("# Notes\n")
        dump = tmp_path / "dump"

        html = convert_single_file(md, dump, ConversionWorker(renderer))

        assert html == dump / "notes.html"
        assert html.is_file()
        assert (dump / "notes.md").read_text() == "# Notes\n"

    def test_invalid_filename_rejected(self, tmp_path, renderer):
        md = tmp_path / "bad name.md"
        md.write_text("x")
        with pytest.raises(InvalidFilenameError):
            convert_single_file(md, tmp_path / "dump", ConversionWorker(renderer))
        assert renderer.calls == []

    def test_missing_file_rejected(self, tmp_path, renderer):
        with pytest.raises(WikiMirrorError, match="does not exist"):
            convert_single_file(tmp_path / "nope.md", tmp_path / "dump", ConversionWorker(renderer))

    def test_render_failure_propagates(self, tmp_path, make_renderer):
        md = tmp_path / "notes.md"
        md.write_text("# Notes\n")
        worker = ConversionWorker(make_renderer(fail_on={"notes.md"}))
        with pytest.raises(ConversionError):
            convert_single_file(md, tmp_path / "dump", worker)
        assert not (tmp_path / "dump" / "notes.html").exists()
