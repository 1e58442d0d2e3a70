"""
Domain layer for pawndex.

Contains pure domain objects with no I/O or side effects:
- Package: catalog record for one repository
- Manifest: fields declared in pawn.json / pawn.yaml
- Classification: conformance tier of a repository
- ScrapeResult: verdict returned by the scraper
- Entry: persisted package plus its scrape-pending flag
"""

from .package import (
    Classification,
    Entry,
    Manifest,
    Package,
    ScrapeResult,
    parse_identifier,
)

__all__ = [
    'Classification',
    'Entry',
    'Manifest',
    'Package',
    'ScrapeResult',
    'parse_identifier',
]
