from __future__ import annotations

from collections import Counter
from typing import Mapping, Optional

import requests

from logging_setup import get_logger
from models import DEFAULT_ICONS, ContentItem, ContentStore, ItemOutcome, MarkerIcon, ResourceKind, RunStats
from utils.fragment import MalformedFragmentError, parse_fragment, serialize_fragment
from utils.link_annotator import annotate
from utils.media_resolver import Resolver
from utils.style_sanitizer import strip_property

ARTIFACT = "link-icons"
DEFAULT_FIELD = "Text"
DEFAULT_PROPERTY = "color"


def process_item(
    item: ContentItem,
    *,
    resolve: Resolver,
    field: str = DEFAULT_FIELD,
    property_name: str = DEFAULT_PROPERTY,
    icons: Mapping[ResourceKind, MarkerIcon] = DEFAULT_ICONS,
    dry_run: bool = False,
    log=None,
) -> ItemOutcome:
    """
    Annotate media links in one item's HTML field, strip the marker style
    property, and write the field back when anything changed.

    Raises MalformedFragmentError (item untouched) when the field is not HTML.
    """
    log = log or get_logger(artifact=ARTIFACT).for_item(item.id)
    outcome = ItemOutcome(item_id=item.id)

    html = item.get_field(field)
    if html is None:
        log.debug("field %s empty or missing; skipping", field)
        return outcome

    fragment = parse_fragment(html)
    tally: Counter = Counter()
    fragment, annotated = annotate(fragment, resolve, icons=icons, log=log, tally=tally)
    fragment, stripped = strip_property(fragment, property_name, log=log, tally=tally)

    outcome.markers_added = tally["markers_added"]
    outcome.styles_stripped = tally["styles_stripped"]
    outcome.unresolved = tally["unresolved"]
    outcome.changed = annotated or stripped
    if not outcome.changed:
        return outcome

    if dry_run:
        log.info("dry-run: would update field %s", field)
        return outcome

    item.set_field(field, serialize_fragment(fragment))
    outcome.updated = True
    log.info("updated field %s", field, extra={"markers_added": outcome.markers_added,
                                               "styles_stripped": outcome.styles_stripped})
    return outcome


def _log_progress(log, *, current: int, progress_every: int) -> None:
    if progress_every > 0 and current % progress_every == 0:
        log.info("items %d scanned", current)


def run_link_icons(
    store: ContentStore,
    *,
    template: str,
    resolve: Resolver,
    name: Optional[str] = None,
    field: str = DEFAULT_FIELD,
    property_name: str = DEFAULT_PROPERTY,
    icons: Mapping[ResourceKind, MarkerIcon] = DEFAULT_ICONS,
    dry_run: bool = False,
    progress_every: int = 0,
    stop_on_error: bool = False,
) -> RunStats:
    """
    Run process_item over every item built from `template` (optionally only
    those named `name`). Items are independent: a malformed fragment, a
    failed media lookup or a failed write is logged and counted, and the
    loop moves on unless stop_on_error is set.
    """
    stats = RunStats()
    run_log = get_logger(artifact=ARTIFACT)
    run_log.info("link icons starting template=%s name=%s field=%s dry_run=%s",
                 template, name or "*", field, dry_run)

    for idx, item in enumerate(store.items(template, name), start=1):
        _log_progress(run_log, current=idx, progress_every=progress_every)
        stats.scanned += 1
        log = run_log.for_item(item.id)
        try:
            outcome = process_item(
                item,
                resolve=resolve,
                field=field,
                property_name=property_name,
                icons=icons,
                dry_run=dry_run,
                log=log,
            )
        except MalformedFragmentError as exc:
            stats.failed += 1
            stats.failed_items.append(item.id)
            log.warning("field %s is not parseable HTML; item left unchanged err=%s", field, exc)
            if stop_on_error:
                raise
            continue
        except (requests.RequestException, OSError, ValueError) as exc:
            stats.failed += 1
            stats.failed_items.append(item.id)
            log.warning("item failed err=%s", exc)
            if stop_on_error:
                raise
            continue
        stats.add(outcome)

    run_log.info("link icons complete dry_run=%s %s", dry_run, stats.to_dict())
    return stats


__all__ = ["DEFAULT_FIELD", "DEFAULT_PROPERTY", "process_item", "run_link_icons"]
