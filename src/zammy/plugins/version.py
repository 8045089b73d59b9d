"""Host version lookup and plugin compatibility checks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zammy.plugins.manifest import PluginManifest

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def get_host_version() -> str:
    """Get the running zammy version."""
    from zammy import __version__

    return __version__


def _parse(version: str) -> tuple[int, int, int]:
    parts = []
    for component in version.split(".")[:3]:
        match = _LEADING_DIGITS.match(component)
        parts.append(int(match.group(1)) if match else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def compare_versions(a: str, b: str) -> int:
    """Compare two major.minor.patch version strings.

    Missing or non-numeric components count as 0.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b
    """
    pa, pb = _parse(a), _parse(b)
    if pa < pb:
        return -1
    if pa > pb:
        return 1
    return 0


def satisfies_min_version(current: str, minimum: str) -> bool:
    return compare_versions(current, minimum) >= 0


def satisfies_max_version(current: str, maximum: str) -> bool:
    return compare_versions(current, maximum) <= 0


def check_version_compatibility(
    manifest: PluginManifest, host_version: str | None = None
) -> tuple[bool, str | None]:
    """Check a manifest's zammy version range against the host.

    Args:
        manifest: Plugin manifest
        host_version: Version to check against (defaults to the running host)

    Returns:
        Tuple of (compatible, reason) where reason explains an incompatibility
    """
    host = host_version or get_host_version()
    minimum = manifest.zammy.min_version
    maximum = manifest.zammy.max_version

    if minimum and not satisfies_min_version(host, minimum):
        return False, f"Requires zammy v{minimum}+, but you have v{host}"

    if maximum and not satisfies_max_version(host, maximum):
        return False, f"Incompatible with zammy v{host} (max supported: v{maximum})"

    return True, None
