"""
Read-only lookups over the package index.

These are the operations a lookup frontend needs: the catalog, a single
package, and the compact "latest version" encoding (three raw bytes:
major, minor, patch) derived from a package's newest tag.
"""

from typing import List, Optional, Sequence, Tuple

from packaging.version import InvalidVersion, Version

from .database.store import PackageStore
from .domain.package import Package
from .errors import VersionError


def catalog(store: PackageStore) -> List[Package]:
    """All cataloged packages."""
    return [p for p in store.get_all() if p.classification.is_cataloged]


def find_package(store: PackageStore, identifier: str) -> Optional[Package]:
    """
    Look up one package.

    Returns None for identifiers that were never seen and for those that
    have not been classified yet.
    """
    package, exists = store.get(identifier)
    if not exists or package is None:
        return None
    return package


def latest_version(tags: Sequence[str]) -> Optional[Tuple[int, int, int]]:
    """
    Parse the newest tag as a three-component version.

    ``tags`` is in platform order, so position 0 is the latest. A leading
    "v" is accepted and missing components count as zero.

    Returns:
        (major, minor, patch), or None if there are no tags

    Raises:
        VersionError: if the tag is not a version
    """
    if not tags:
        return None
    try:
        version = Version(tags[0])
    except InvalidVersion as e:
        raise VersionError(f"latest tag {tags[0]!r} is not a version: {e}") from e
    return version.major, version.minor, version.micro


def latest_version_bytes(tags: Sequence[str]) -> Optional[bytes]:
    """
    Encode the newest tag as three raw bytes.

    Example:
        latest_version_bytes(["2.1.0", "2.0.0"]) == b"\\x02\\x01\\x00"

    Raises:
        VersionError: if the tag is not a version or a component exceeds 255
    """
    version = latest_version(tags)
    if version is None:
        return None
    if any(part > 255 for part in version):
        raise VersionError(f"version {'.'.join(map(str, version))} does not fit in three bytes")
    return bytes(version)
