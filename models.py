#models.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, NamedTuple, Optional, Protocol, Tuple

from bs4 import BeautifulSoup


class ResourceKind(str, Enum):
    PDF = "pdf"
    ZIP = "zip"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class MarkerIcon:
    tag: str
    css_class: str              # full class attribute, e.g. "fa fa-file-pdf-o"
    marker_token: str           # token the idempotence guard looks for in the link content
    attrs: Tuple[Tuple[str, str], ...] = (("aria-hidden", "true"),)

    def attributes(self) -> Dict[str, str]:
        return {"class": self.css_class, **dict(self.attrs)}


# Accepted marker tags, in lookup priority order.
MARKER_TAGS: Tuple[str, ...] = ("em", "i")

DEFAULT_ICONS: Dict[ResourceKind, MarkerIcon] = {
    ResourceKind.PDF: MarkerIcon(tag="em", css_class="fa fa-file-pdf-o", marker_token="fa-file-pdf-o"),
    ResourceKind.ZIP: MarkerIcon(tag="em", css_class="fa fa-file-archive-o", marker_token="fa-file-archive-o"),
}


class TransformResult(NamedTuple):
    fragment: BeautifulSoup
    changed: bool


class ContentItem(Protocol):
    id: str

    def get_field(self, name: str) -> Optional[str]: ...
    def set_field(self, name: str, value: str) -> None: ...


class ContentStore(Protocol):
    def items(self, template: str, name: Optional[str] = None) -> Iterable[ContentItem]: ...


@dataclass(slots=True)
class ItemOutcome:
    item_id: str
    markers_added: int = 0
    styles_stripped: int = 0
    unresolved: int = 0
    changed: bool = False
    updated: bool = False  # False on dry-run even when changed


@dataclass
class RunStats:
    scanned: int = 0
    changed: int = 0
    updated: int = 0
    failed: int = 0
    markers_added: int = 0
    styles_stripped: int = 0
    unresolved: int = 0
    failed_items: list[str] = field(default_factory=list)

    def add(self, outcome: ItemOutcome) -> None:
        self.markers_added += outcome.markers_added
        self.styles_stripped += outcome.styles_stripped
        self.unresolved += outcome.unresolved
        if outcome.changed:
            self.changed += 1
        if outcome.updated:
            self.updated += 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "scanned": self.scanned,
            "changed": self.changed,
            "updated": self.updated,
            "failed": self.failed,
            "markers_added": self.markers_added,
            "styles_stripped": self.styles_stripped,
            "unresolved": self.unresolved,
        }
