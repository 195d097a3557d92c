"""Prepend file-type icon markers to links that point at PDF or ZIP media items."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Mapping, Optional

from bs4 import BeautifulSoup

from models import DEFAULT_ICONS, MarkerIcon, ResourceKind, TransformResult
from utils.media_resolver import ResolutionError, Resolver, media_id_from_href

_log = logging.getLogger(__name__)


def annotate(
    fragment: BeautifulSoup,
    resolve: Resolver,
    *,
    icons: Mapping[ResourceKind, MarkerIcon] = DEFAULT_ICONS,
    log: Optional[logging.LoggerAdapter] = None,
    tally: Optional[Counter] = None,
) -> TransformResult:
    """Insert a marker into every media link whose kind has an icon.

    A link is left alone when its content already contains the icon's marker
    token anywhere (plain substring match), so running this twice is a no-op.
    A marker of a different kind does not count: such a link gets a second
    marker. Links whose target cannot be resolved are logged and skipped.

    When given, `tally` counts "markers_added" and "unresolved".
    """
    log = log or _log
    tally = tally if tally is not None else Counter()
    changed = False

    for link in fragment.find_all("a"):
        href = link.get("href")
        media_id = media_id_from_href(href)
        if media_id is None:
            continue

        try:
            kind = resolve(media_id)
        except ResolutionError as exc:
            log.warning("link target not resolved href=%s err=%s", href, exc, extra={"href": href})
            tally["unresolved"] += 1
            continue

        icon = icons.get(kind)
        if icon is None:
            continue

        if icon.marker_token in link.decode_contents():
            continue

        marker = fragment.new_tag(icon.tag, attrs=icon.attributes())
        link.insert(0, marker)
        changed = True
        tally["markers_added"] += 1
        log.info("inserted %s marker href=%s", kind.value, href, extra={"href": href})

    return TransformResult(fragment, changed)


__all__ = ["annotate"]
