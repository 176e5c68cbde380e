"""
Scrape Fetchers
One fetcher per data source queried during a scrape
"""

from .status_fetcher import StatusFetcher
from .release_fetcher import ReleaseFetcher
from .version_probe import VersionProbe

__all__ = [
    'StatusFetcher',
    'ReleaseFetcher',
    'VersionProbe'
]
