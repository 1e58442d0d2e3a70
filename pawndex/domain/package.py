"""
Package domain objects for pawndex.

A Package is the catalog record for one repository. It is immutable and
serializable; the store persists it as JSON.

Classification tiers, from most to least conformant:
- full:    the repository ships a pawn.json or pawn.yaml manifest
- basic:   no manifest, but .inc/.pwn files sit at the repository root
- buried:  .inc/.pwn files exist only below the root
- invalid: no qualifying files; never part of the catalog
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, Tuple

from ..errors import InvalidIdentifierError, ManifestError


class Classification(Enum):
    """How conformant a repository is to the Pawn package layout."""
    FULL = "full"
    BASIC = "basic"
    BURIED = "buried"
    INVALID = "invalid"

    @property
    def is_cataloged(self) -> bool:
        """Whether repositories of this tier belong in the catalog."""
        return self is not Classification.INVALID


def parse_identifier(identifier: str) -> Tuple[str, str]:
    """
    Split an ``owner/name`` identifier.

    Args:
        identifier: Repository identifier as returned by GitHub

    Returns:
        (owner, name) tuple

    Raises:
        InvalidIdentifierError: if either segment is missing
    """
    if not isinstance(identifier, str):
        raise InvalidIdentifierError(str(identifier))
    parts = identifier.split('/')
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise InvalidIdentifierError(identifier)
    return parts[0], parts[1]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _string_field(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ManifestError(f"manifest field '{key}' must be a string")
    return str(value)


def _string_list_field(data: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"manifest field '{key}' must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class Manifest:
    """Fields declared by a package author in pawn.json / pawn.yaml."""
    entry: str = ""
    output: str = ""
    dependencies: Tuple[str, ...] = ()
    dev_dependencies: Tuple[str, ...] = ()
    contributors: Tuple[str, ...] = ()
    website: str = ""
    include_path: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> 'Manifest':
        """
        Build a Manifest from a decoded JSON/YAML document.

        Unknown keys are ignored. Raises ManifestError if the document is not
        a mapping or a known field has the wrong type.
        """
        if not isinstance(data, dict):
            raise ManifestError("manifest must be a mapping")

        return cls(
            entry=_string_field(data, 'entry'),
            output=_string_field(data, 'output'),
            dependencies=_string_list_field(data, 'dependencies'),
            dev_dependencies=_string_list_field(data, 'dev_dependencies'),
            contributors=_string_list_field(data, 'contributors'),
            website=_string_field(data, 'website'),
            include_path=_string_field(data, 'include_path'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entry': self.entry,
            'output': self.output,
            'dependencies': list(self.dependencies),
            'dev_dependencies': list(self.dev_dependencies),
            'contributors': list(self.contributors),
            'website': self.website,
            'include_path': self.include_path,
        }


@dataclass(frozen=True)
class Package:
    """
    Catalog record for one repository.

    Only cataloged classifications can be represented: constructing a
    Package with Classification.INVALID raises ValueError. ``tags`` keeps the
    order GitHub returned them in, so ``tags[0]`` is the latest version.
    """
    owner: str
    name: str
    classification: Classification
    manifest: Optional[Manifest] = None
    stars: int = 0
    updated: Optional[datetime] = None
    topics: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.classification.is_cataloged:
            raise ValueError(f"{self.classification.value} repositories have no catalog entry")
        if self.manifest is not None and self.classification is not Classification.FULL:
            raise ValueError("only full packages carry a manifest")

    @property
    def identifier(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def latest_tag(self) -> Optional[str]:
        return self.tags[0] if self.tags else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'identifier': self.identifier,
            'owner': self.owner,
            'name': self.name,
            'classification': self.classification.value,
            'manifest': self.manifest.to_dict() if self.manifest else None,
            'stars': self.stars,
            'updated': self.updated.isoformat() if self.updated else None,
            'topics': list(self.topics),
            'tags': list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Package':
        """Rebuild a Package from :meth:`to_dict` output."""
        manifest = data.get('manifest')
        return cls(
            owner=data['owner'],
            name=data['name'],
            classification=Classification(data['classification']),
            manifest=Manifest.from_dict(manifest) if manifest else None,
            stars=data.get('stars', 0),
            updated=parse_timestamp(data.get('updated')),
            topics=tuple(data.get('topics') or ()),
            tags=tuple(data.get('tags') or ()),
        )


@dataclass(frozen=True)
class ScrapeResult:
    """
    Verdict of one scrape.

    Either a cataloged Package, or an invalid verdict with no payload. Use
    the ``cataloged`` and ``invalid`` constructors.
    """
    identifier: str
    classification: Classification
    package: Optional[Package] = None

    def __post_init__(self):
        if self.classification.is_cataloged != (self.package is not None):
            raise ValueError("cataloged verdicts need a package, invalid ones must not have one")

    @classmethod
    def cataloged(cls, package: Package) -> 'ScrapeResult':
        return cls(package.identifier, package.classification, package)

    @classmethod
    def invalid(cls, identifier: str) -> 'ScrapeResult':
        return cls(identifier, Classification.INVALID)

    @property
    def is_cataloged(self) -> bool:
        return self.package is not None


@dataclass(frozen=True)
class Entry:
    """
    Unit of persistence: a Package (None until first scraped) and the
    scrape-pending flag.
    """
    identifier: str
    package: Optional[Package] = None
    marked: bool = False
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identifier': self.identifier,
            'package': self.package.to_dict() if self.package else None,
            'marked': self.marked,
            'updated_at': self.updated_at,
        }
