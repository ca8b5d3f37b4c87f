# listing_watch/models/target.py

"""Static descriptor of one monitored listing page."""

from dataclasses import dataclass
from pathlib import Path

from listing_watch.scrapers.base_parser import BaseParser


@dataclass(frozen=True)
class Target:
    """A monitored page: where to fetch, how to parse, where to persist."""

    id: str
    name: str
    url: str
    parser: BaseParser
    output_path: Path
    new_label: str
    item_label: str = ""
    link_label: str = ""
    empty_label: str = ""
    emoji: str = ""
