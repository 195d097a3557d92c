# tests/conftest.py
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import requests


# ---------- import helpers ----------
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from models import ResourceKind  # noqa: E402
from utils.media_resolver import ResolutionError, normalize_media_id  # noqa: E402

PDF_ID = "{11111111-2222-3333-4444-555555555555}"
ZIP_ID = "{AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE}"
JPG_ID = "{99999999-8888-7777-6666-555555555555}"


# ---------- in-memory collaborators ----------
class FakeItem:
    """Records every set_field call; fail_writes=True raises HTTPError, an exception instance is raised as-is."""

    def __init__(self, item_id: str, fields: Optional[Dict[str, str]] = None, fail_writes=False):
        self.id = item_id
        self.fields = dict(fields or {})
        self.writes: List[tuple[str, str]] = []
        self.fail_writes = fail_writes

    def get_field(self, name: str) -> Optional[str]:
        return self.fields.get(name)

    def set_field(self, name: str, value: str) -> None:
        if isinstance(self.fail_writes, BaseException):
            raise self.fail_writes
        if self.fail_writes:
            raise requests.HTTPError("500 error")
        self.writes.append((name, value))
        self.fields[name] = value


class FakeStore:
    def __init__(self, items: List[FakeItem]):
        self._items = items
        self.queries: List[tuple[str, Optional[str]]] = []

    def items(self, template: str, name: Optional[str] = None):
        self.queries.append((template, name))
        return iter(self._items)


class DictResolver:
    """Resolver over a fixed id -> kind table; counts lookups."""

    def __init__(self, kinds: Dict[str, ResourceKind]):
        self.kinds = {normalize_media_id(k): v for k, v in kinds.items()}
        self.calls: List[str] = []

    def __call__(self, media_id: str) -> ResourceKind:
        self.calls.append(media_id)
        try:
            return self.kinds[normalize_media_id(media_id)]
        except KeyError:
            raise ResolutionError(f"unknown media {media_id}") from None


def media_href(media_id: str) -> str:
    return f"~/media/{media_id}.ashx"


# ---------- common fixtures ----------
@pytest.fixture
def resolver():
    return DictResolver({
        PDF_ID: ResourceKind.PDF,
        ZIP_ID: ResourceKind.ZIP,
        JPG_ID: ResourceKind.OTHER,
    })


@pytest.fixture
def export_root(tmp_path: Path):
    """Export directory with two Article items, one Folder item and a media map."""
    root = tmp_path / "export"
    items = root / "items"
    items.mkdir(parents=True, exist_ok=True)

    def _item(filename: str, record: dict) -> None:
        (items / filename).write_text(json.dumps(record), encoding="utf-8")

    _item("001.json", {
        "id": "{A1}",
        "template": "Article",
        "name": "annual-report",
        "fields": {"Text": f'<p><a href="{media_href(PDF_ID)}">Annual report</a></p>'},
    })
    _item("002.json", {
        "id": "{A2}",
        "template": "Article",
        "name": "downloads",
        "fields": {"Text": '<p><a href="/contact">Contact</a></p>'},
    })
    _item("003.json", {
        "id": "{F1}",
        "template": "Folder",
        "name": "annual-report",
        "fields": {"Text": f'<a href="{media_href(ZIP_ID)}">Bundle</a>'},
    })

    (root / "media.json").write_text(json.dumps({
        PDF_ID: {"extension": "pdf", "mime_type": "application/pdf"},
        ZIP_ID: {"extension": "zip", "mime_type": "application/zip"},
    }), encoding="utf-8")
    return root
