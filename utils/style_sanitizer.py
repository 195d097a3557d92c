"""Remove one inline CSS property from the icon marker inside each link."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from bs4 import BeautifulSoup, Tag

from models import MARKER_TAGS, TransformResult

_log = logging.getLogger(__name__)


def _first_marker(link: Tag) -> Optional[Tag]:
    for name in MARKER_TAGS:
        marker = link.find(name, recursive=False)
        if marker is not None:
            return marker
    return None


def remove_style_property(style: str, property_name: str) -> Optional[str]:
    """
    Cut `property_name:` through the next ';' out of a raw style string.

    Plain substring search: returns None (no change) when the property is
    missing or has no terminating semicolon after it.

    >>> remove_style_property("color:green;font-size:1em;", "color")
    'font-size:1em;'
    >>> remove_style_property("font-size:1em;color:green", "color") is None
    True
    """
    start = style.find(f"{property_name}:")
    if start == -1:
        return None
    end = style.find(";", start)
    if end == -1:
        return None
    return style[:start] + style[end + 1:]


def strip_property(
    fragment: BeautifulSoup,
    property_name: str,
    *,
    log: Optional[logging.LoggerAdapter] = None,
    tally: Optional[Counter] = None,
) -> TransformResult:
    """Strip `property_name` from the style of the first marker directly under each link."""
    log = log or _log
    tally = tally if tally is not None else Counter()
    changed = False

    for link in fragment.find_all("a"):
        marker = _first_marker(link)
        if marker is None:
            continue

        style = marker.get("style")
        if not style or property_name not in style:
            continue

        cleaned = remove_style_property(style, property_name)
        if cleaned is None or cleaned == style:
            continue

        marker["style"] = cleaned
        changed = True
        tally["styles_stripped"] += 1
        log.info(
            "removed %s from marker style href=%s",
            property_name, link.get("href"),
            extra={"href": link.get("href"), "style_before": style, "style_after": cleaned},
        )

    return TransformResult(fragment, changed)


__all__ = ["remove_style_property", "strip_property"]
