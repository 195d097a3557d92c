"""Resolve media-library link targets to the kind of resource they point at."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Set

import requests

from models import ResourceKind
from utils.api import ContentAPI

Resolver = Callable[[str], ResourceKind]

# ~/media/<id>.ashx, optionally rooted and with a query string (?la=en)
MEDIA_HREF_RE = re.compile(r"^/?~/media/(?P<media_id>[^/?#]+?)\.ashx(?:[?#].*)?$", re.I)

ZIP_MIME_TYPES = {
    "application/zip",
    "application/x-zip",
    "application/x-zip-compressed",
}


class ResolutionError(LookupError):
    """Raised when a link target does not point at a known media item."""


def media_id_from_href(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    m = MEDIA_HREF_RE.match(href.strip())
    return m.group("media_id") if m else None


def normalize_media_id(raw: str) -> str:
    """'{ab-12}' and 'AB12' identify the same item."""
    return re.sub(r"[{}\-\s]", "", raw).upper()


def kind_for_media(extension: Optional[str], mime_type: Optional[str] = None) -> ResourceKind:
    ext = (extension or "").strip().lstrip(".").lower()
    mime = (mime_type or "").strip().lower()
    if ext == "pdf" or mime == "application/pdf":
        return ResourceKind.PDF
    if ext == "zip" or mime in ZIP_MIME_TYPES:
        return ResourceKind.ZIP
    return ResourceKind.OTHER


class MediaMapResolver:
    """Resolver backed by an in-memory media id -> {"extension", "mime_type"} map."""

    def __init__(self, media: Mapping[str, Mapping[str, Any]]) -> None:
        self._media = {normalize_media_id(str(k)): v for k, v in media.items()}

    def __call__(self, media_id: str) -> ResourceKind:
        meta = self._media.get(normalize_media_id(media_id))
        if meta is None:
            raise ResolutionError(f"media item not found: {media_id}")
        return kind_for_media(meta.get("extension"), meta.get("mime_type"))


def load_media_map(path: Path) -> Dict[str, Dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object keyed by media id")
    return data


class ApiMediaResolver:
    """Resolver that looks media items up via GET /media/{id}, caching hits and misses per run."""

    def __init__(self, api: ContentAPI) -> None:
        self.api = api
        self._cache: Dict[str, ResourceKind] = {}
        self._missing: Set[str] = set()

    def __call__(self, media_id: str) -> ResourceKind:
        key = normalize_media_id(media_id)
        if key in self._cache:
            return self._cache[key]
        if key in self._missing:
            raise ResolutionError(f"media item not found: {media_id}")
        try:
            meta = self.api.get(f"/media/{key}")
        except requests.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            if status == 404:
                self._missing.add(key)
                raise ResolutionError(f"media item not found: {media_id}") from exc
            raise
        if not isinstance(meta, dict):
            self._missing.add(key)
            raise ResolutionError(f"unexpected media payload for {media_id}")
        kind = kind_for_media(meta.get("extension"), meta.get("mime_type"))
        self._cache[key] = kind
        return kind


__all__ = [
    "ApiMediaResolver",
    "MEDIA_HREF_RE",
    "MediaMapResolver",
    "ResolutionError",
    "Resolver",
    "kind_for_media",
    "load_media_map",
    "media_id_from_href",
    "normalize_media_id",
]
