"""Transports that bring plugin sources onto the local disk.

The installer only needs a directory containing a plugin manifest; how it got
there is up to a :class:`PackageFetcher`. The default implementation copies
local directories, downloads source distributions from a PyPI-compatible JSON
index, and clones git repositories.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import tarfile
import zipfile
from enum import Enum
from pathlib import Path
from typing import Protocol

import httpx

from zammy.plugins.manifest import MANIFEST_FILENAME

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://pypi.org/pypi"

_IGNORED_ON_COPY = shutil.ignore_patterns(".git", "__pycache__", "*.pyc", ".venv", "node_modules")
_GITHUB_SHORTHAND = re.compile(r"^(?:github:)?([\w.-]+/[\w.-]+?)(?:\.git)?(?:#([\w./-]+))?$")


class SourceType(str, Enum):
    """Kind of install source."""

    LOCAL = "local"
    REGISTRY = "registry"
    GITHUB = "github"
    GIT = "git"
    UNKNOWN = "unknown"


class FetchError(Exception):
    """Plugin source could not be retrieved."""


class PackageFetcher(Protocol):
    """Retrieves plugin sources into a staging directory."""

    def fetch(self, source: str, source_type: SourceType, dest: Path) -> Path:
        """Place the plugin identified by ``source`` under ``dest``.

        Returns:
            Directory inside ``dest`` that contains the plugin manifest
        """
        ...


def find_plugin_root(path: Path, max_depth: int = 2) -> Path:
    """Locate the directory holding the manifest at or below ``path``.

    Raises:
        FetchError: If no manifest is found
    """
    if (path / MANIFEST_FILENAME).is_file():
        return path
    if max_depth > 0 and path.is_dir():
        for child in sorted(p for p in path.iterdir() if p.is_dir()):
            try:
                return find_plugin_root(child, max_depth - 1)
            except FetchError:
                continue
    raise FetchError(f"No {MANIFEST_FILENAME} found in {path}")


def parse_github_ref(source: str) -> tuple[str, str | None]:
    """Split ``github:user/repo#ref`` into ``("user/repo", "ref")``."""
    match = _GITHUB_SHORTHAND.match(source)
    if not match:
        raise FetchError(f"Invalid GitHub reference: {source}")
    return match.group(1), match.group(2)


class DefaultPackageFetcher:
    """Fetch plugins from the filesystem, a package index, or git."""

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = 60,
        git_timeout: float = 120,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self.git_timeout = git_timeout

    def fetch(self, source: str, source_type: SourceType, dest: Path) -> Path:
        if source_type is SourceType.LOCAL:
            return self.fetch_local(Path(source), dest)
        if source_type is SourceType.REGISTRY:
            return self.fetch_registry(source, dest)
        if source_type is SourceType.GITHUB:
            repo, ref = parse_github_ref(source)
            return self.fetch_git(f"https://github.com/{repo}.git", dest, ref=ref)
        if source_type is SourceType.GIT:
            url, _, ref = source.partition("#")
            return self.fetch_git(url, dest, ref=ref or None)
        raise FetchError(f"Cannot fetch source of type '{source_type.value}': {source}")

    def fetch_local(self, source: Path, dest: Path) -> Path:
        src = source.expanduser().resolve()
        if not src.is_dir():
            raise FetchError(f"Path not found: {src}")
        target = dest / src.name
        shutil.copytree(src, target, ignore=_IGNORED_ON_COPY)
        return find_plugin_root(target)

    def fetch_registry(self, package: str, dest: Path) -> Path:
        """Download and unpack the latest source distribution of ``package``."""
        name, _, version = package.partition("==")
        url = f"{self.registry_url}/{name}/{version}/json" if version else f"{self.registry_url}/{name}/json"

        logger.info("Downloading %s from %s", package, self.registry_url)
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                response = client.get(url)
                if response.status_code == 404:
                    raise FetchError(f"Package '{package}' not found")
                response.raise_for_status()

                try:
                    archive_url, filename = _select_sdist(response.json())
                except (ValueError, KeyError, TypeError, AttributeError) as e:
                    raise FetchError(f"Unexpected index response for '{package}': {e}") from e
                archive = dest / Path(filename).name
                with client.stream("GET", archive_url) as stream:
                    stream.raise_for_status()
                    with open(archive, "wb") as f:
                        for chunk in stream.iter_bytes():
                            f.write(chunk)
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to download '{package}': {e}") from e

        extract_dir = dest / "extract"
        extract_dir.mkdir()
        _extract_archive(archive, extract_dir)
        return find_plugin_root(extract_dir)

    def fetch_git(self, url: str, dest: Path, ref: str | None = None) -> Path:
        target = dest / "repo"
        cmd = ["git", "clone", "--depth", "1"]
        if ref:
            cmd += ["--branch", ref]
        cmd += [url, str(target)]

        logger.info("Cloning %s", url)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.git_timeout,
            )
        except FileNotFoundError as e:
            raise FetchError("git is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise FetchError(f"Cloning {url} timed out after {self.git_timeout}s") from e

        if result.returncode != 0:
            raise FetchError(f"git clone failed: {result.stderr.strip() or result.returncode}")
        return find_plugin_root(target)


def _select_sdist(metadata: dict) -> tuple[str, str]:
    for file_info in metadata.get("urls", []):
        if file_info.get("packagetype") == "sdist":
            return file_info["url"], file_info["filename"]
    raise FetchError("Package has no source distribution")


def _extract_archive(archive: Path, dest: Path) -> None:
    """Unpack a .tar.gz or .zip archive, refusing members outside ``dest``."""
    root = dest.resolve()

    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                if not (root / member).resolve().is_relative_to(root):
                    raise FetchError(f"Unsafe path in archive: {member}")
            zf.extractall(root)
        return

    try:
        with tarfile.open(archive, "r:*") as tf:
            for member in tf.getmembers():
                if not (root / member.name).resolve().is_relative_to(root):
                    raise FetchError(f"Unsafe path in archive: {member.name}")
                if member.issym() or member.islnk():
                    raise FetchError(f"Links are not allowed in plugin archives: {member.name}")
            tf.extractall(root, filter="data")
    except tarfile.TarError as e:
        raise FetchError(f"Cannot extract {archive.name}: {e}") from e
