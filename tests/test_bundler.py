"""Tests for the single-file bundler."""

from __future__ import annotations

import hashlib

from pathlib import Path

import pytest

from bs4 import BeautifulSoup

from embedframe.bundler import BundlePaths, bundle, inline_script
from embedframe.config import BundleSettings
from embedframe.exceptions import BundleError, MissingBuildInputError, PreconditionError
from tests.helpers import APP_JS, SHELL_HTML


# =============================================================================
# inline_script Tests
# =============================================================================


class TestInlineScript:
    """Test the pure shell + script merge."""

    def test_removes_src(self) -> None:
        """The merged script element has no src attribute."""
        merged = inline_script(SHELL_HTML, "var x = 1;")
        soup = BeautifulSoup(merged, "html.parser")
        scripts = soup.find_all("script")
        assert len(scripts) == 1
        assert not scripts[0].has_attr("src")
        assert scripts[0].get("defer") == "defer"

    def test_script_text_is_verbatim(self) -> None:
        """Script text is inserted without entity escaping or newline changes."""
        merged = inline_script(SHELL_HTML, APP_JS)
        assert APP_JS in merged
        assert "&lt;" not in merged
        assert "\r\n" in merged

    def test_rest_of_document_kept(self) -> None:
        """Other elements survive the merge."""
        merged = inline_script(SHELL_HTML, "var x = 1;")
        assert merged.startswith("<!DOCTYPE html>")
        assert "<title>Comments</title>" in merged
        assert '<div id="parlezvous-comments"></div>' in merged

    def test_inline_scripts_untouched(self) -> None:
        """Inline scripts without src are not counted or changed."""
        shell = (
            "<html><head><script>window.cfg = {};</script>"
            '<script src="app.js"></script></head><body></body></html>'
        )
        merged = inline_script(shell, "run();")
        assert "<script>window.cfg = {};</script><script>run();</script>" in merged

    @pytest.mark.parametrize(
        ("shell", "count"),
        [
            ("<html><head></head><body></body></html>", 0),
            ("<html><head><script>inline();</script></head></html>", 0),
            ('<html><head><script src="a.js"></script><script src="b.js"></script></head></html>', 2),
        ],
    )
    def test_requires_exactly_one_external_script(self, shell: str, count: int) -> None:
        """Zero or several external scripts cannot be merged."""
        with pytest.raises(BundleError) as exc_info:
            inline_script(shell, "x();")
        assert exc_info.value.script_count == count


# =============================================================================
# BundlePaths Tests
# =============================================================================


class TestBundlePaths:
    """Test path construction."""

    def test_from_dist_defaults(self) -> None:
        """Conventional names under the build directory."""
        paths = BundlePaths.from_dist("dist")
        assert paths.shell == Path("dist/index.html")
        assert paths.script == Path("dist/app.js")
        assert paths.output == Path("dist/iframe-app.html")
        assert paths.backup == Path("dist/original.html")

    def test_from_settings(self) -> None:
        """Names follow the bundle settings."""
        settings = BundleSettings(dist_dir="build", script_name="main.js", output_name="widget.html")
        paths = BundlePaths.from_settings(settings)
        assert paths.script == Path("build/main.js")
        assert paths.output == Path("build/widget.html")


# =============================================================================
# bundle Tests
# =============================================================================


class TestBundle:
    """Test the bundle run and its file system effects."""

    def test_produces_artifact_and_backup(self, dist_dir: Path) -> None:
        """Output is written and the shell is moved to the backup path."""
        paths = BundlePaths.from_dist(dist_dir)
        result = bundle(paths)

        assert result.output == dist_dir / "iframe-app.html"
        assert (dist_dir / "iframe-app.html").is_file()
        assert not (dist_dir / "index.html").exists()
        assert (dist_dir / "original.html").read_bytes() == SHELL_HTML.encode("utf-8")
        assert (dist_dir / "app.js").read_bytes() == APP_JS.encode("utf-8")

    def test_output_contains_script_bytes(self, dist_dir: Path) -> None:
        """The script's bytes appear in the output unchanged."""
        bundle(BundlePaths.from_dist(dist_dir))
        output = (dist_dir / "iframe-app.html").read_bytes()
        assert APP_JS.encode("utf-8") in output
        assert b'src="app.js"' not in output

    def test_result_metadata(self, dist_dir: Path) -> None:
        """The result reports the digest and sizes of what was written."""
        result = bundle(BundlePaths.from_dist(dist_dir))
        output = (dist_dir / "iframe-app.html").read_bytes()
        assert result.sha256 == hashlib.sha256(output).hexdigest()
        assert result.output_bytes == len(output)
        assert result.script_bytes == len(APP_JS.encode("utf-8"))
        assert result.shell_bytes == len(SHELL_HTML.encode("utf-8"))

    def test_rerun_is_deterministic(self, dist_dir: Path) -> None:
        """Restoring the shell and bundling again gives identical output."""
        paths = BundlePaths.from_dist(dist_dir)
        first = bundle(paths)
        (dist_dir / "original.html").replace(dist_dir / "index.html")
        second = bundle(paths)

        assert first.sha256 == second.sha256
        assert (dist_dir / "original.html").read_bytes() == SHELL_HTML.encode("utf-8")

    def test_stale_backup_is_replaced(self, dist_dir: Path) -> None:
        """A backup from a previous run is overwritten."""
        (dist_dir / "original.html").write_text("stale", encoding="utf-8")
        bundle(BundlePaths.from_dist(dist_dir))
        assert (dist_dir / "original.html").read_bytes() == SHELL_HTML.encode("utf-8")

    @pytest.mark.parametrize("missing", ["index.html", "app.js"])
    def test_missing_input_changes_nothing(self, dist_dir: Path, missing: str) -> None:
        """A missing input aborts before any file is written or moved."""
        (dist_dir / missing).unlink()
        before = sorted(p.name for p in dist_dir.iterdir())

        with pytest.raises(MissingBuildInputError) as exc_info:
            bundle(BundlePaths.from_dist(dist_dir))

        assert exc_info.value.path == str(dist_dir / missing)
        assert sorted(p.name for p in dist_dir.iterdir()) == before

    def test_missing_input_is_precondition_error(self, tmp_path: Path) -> None:
        """Missing inputs belong to the precondition error family."""
        with pytest.raises(PreconditionError):
            bundle(BundlePaths.from_dist(tmp_path / "nowhere"))

    def test_unmergeable_shell_changes_nothing(self, dist_dir: Path) -> None:
        """A shell without an external script leaves the directory as it was."""
        (dist_dir / "index.html").write_text("<html><body></body></html>", encoding="utf-8")

        with pytest.raises(BundleError):
            bundle(BundlePaths.from_dist(dist_dir))

        assert (dist_dir / "index.html").exists()
        assert not (dist_dir / "iframe-app.html").exists()
        assert not (dist_dir / "original.html").exists()

    def test_output_must_differ_from_shell(self, dist_dir: Path) -> None:
        """Writing the artifact over the shell is refused."""
        paths = BundlePaths.from_dist(dist_dir, output_name="index.html")
        with pytest.raises(BundleError):
            bundle(paths)
        assert (dist_dir / "index.html").read_bytes() == SHELL_HTML.encode("utf-8")

    def test_output_in_other_directory(self, dist_dir: Path, tmp_path: Path) -> None:
        """The output directory is created when needed."""
        paths = BundlePaths(
            shell=dist_dir / "index.html",
            script=dist_dir / "app.js",
            output=tmp_path / "public" / "embed" / "iframe-app.html",
            backup=dist_dir / "original.html",
        )
        bundle(paths)
        assert paths.output.is_file()
