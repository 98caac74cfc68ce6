"""Build-time bundler producing a single-file iframe document.

``inline_script`` is the pure transform; ``bundle`` sequences the file
system effects around it: read both inputs, write the merged artifact,
then move the original shell to its backup path.
"""

from __future__ import annotations

import hashlib

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from .exceptions import BundleError, MissingBuildInputError
from .log import debug, info


if TYPE_CHECKING:
    from .config import BundleSettings


def inline_script(shell_text: str, script_text: str) -> str:
    """Replace the shell's external script reference with the script itself.

    Parameters
    ----------
    shell_text : str
        HTML document with exactly one ``<script src=...>`` element.
    script_text : str
        Compiled script. Inserted verbatim, without escaping.

    Returns
    -------
    str
        The serialized merged document.

    Raises
    ------
    BundleError
        If the shell has no external script, or more than one.
    """
    soup = BeautifulSoup(shell_text, "html.parser")

    external = soup.find_all("script", src=True)
    if len(external) != 1:
        raise BundleError(
            "HTML shell must reference exactly one external script",
            script_count=len(external),
        )

    script = external[0]
    debug(f"Inlining script referenced as {script['src']!r}")
    del script["src"]
    # script/style bodies are serialized without entity substitution
    script.string = script_text

    return str(soup)


@dataclass(frozen=True)
class BundlePaths:
    """Inputs and outputs of one bundle run."""

    shell: Path
    script: Path
    output: Path
    backup: Path

    @classmethod
    def from_dist(
        cls,
        dist_dir: str | Path = "dist",
        shell_name: str = "index.html",
        script_name: str = "app.js",
        output_name: str = "iframe-app.html",
        backup_name: str = "original.html",
    ) -> BundlePaths:
        """Build the conventional paths under a build output directory."""
        dist = Path(dist_dir)
        return cls(
            shell=dist / shell_name,
            script=dist / script_name,
            output=dist / output_name,
            backup=dist / backup_name,
        )

    @classmethod
    def from_settings(cls, settings: BundleSettings) -> BundlePaths:
        """Build paths from bundle settings."""
        return cls.from_dist(
            settings.dist_dir,
            shell_name=settings.shell_name,
            script_name=settings.script_name,
            output_name=settings.output_name,
            backup_name=settings.backup_name,
        )


@dataclass(frozen=True)
class BundleResult:
    """Outcome of a bundle run."""

    output: Path
    backup: Path
    sha256: str
    shell_bytes: int
    script_bytes: int
    output_bytes: int


def _read_utf8(path: Path) -> str:
    # Bytes in, no newline translation, so the script survives byte-for-byte
    return path.read_bytes().decode("utf-8")


def bundle(paths: BundlePaths) -> BundleResult:
    """Merge the script into the shell and move the shell to its backup path.

    The merged artifact is written before the shell is moved, so a failed
    write never loses the original. Missing inputs abort before anything
    is written or moved.

    Parameters
    ----------
    paths : BundlePaths
        Inputs and outputs.

    Returns
    -------
    BundleResult
        Output location, digest and sizes.

    Raises
    ------
    MissingBuildInputError
        If the shell or the script does not exist.
    BundleError
        If the shell cannot be merged, or the output path is the shell path.
    """
    for required in (paths.script, paths.shell):
        if not required.is_file():
            raise MissingBuildInputError("Build input not found", path=str(required))
    if paths.output.resolve() == paths.shell.resolve():
        raise BundleError("Output path must differ from the shell path", path=str(paths.output))

    shell_text = _read_utf8(paths.shell)
    script_text = _read_utf8(paths.script)

    merged = inline_script(shell_text, script_text).encode("utf-8")

    paths.output.parent.mkdir(parents=True, exist_ok=True)
    paths.output.write_bytes(merged)
    # Replaces a backup left by a previous run
    paths.shell.replace(paths.backup)

    result = BundleResult(
        output=paths.output,
        backup=paths.backup,
        sha256=hashlib.sha256(merged).hexdigest(),
        shell_bytes=len(shell_text.encode("utf-8")),
        script_bytes=len(script_text.encode("utf-8")),
        output_bytes=len(merged),
    )
    info(
        f"Bundled {paths.script.name} into {paths.output} "
        f"({result.output_bytes / 1024:.1f} KB, sha256 {result.sha256[:12]}); "
        f"original shell moved to {paths.backup}"
    )
    return result
