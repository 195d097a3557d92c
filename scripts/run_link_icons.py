#!/usr/bin/env python3
"""Add PDF/ZIP icon markers to media links in item rich-text fields."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

import requests

# --- ensure repo root on sys.path ---
THIS_FILE = Path(__file__).resolve()
REPO_ROOT = THIS_FILE.parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from logging_setup import setup_logging, get_logger
from utils import api as api_mod
from utils.content_store import ApiContentStore, ExportContentStore
from utils.link_icons import DEFAULT_FIELD, DEFAULT_PROPERTY, run_link_icons
from utils.media_resolver import ApiMediaResolver, MediaMapResolver, load_media_map


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Prepend file-type icons to media links and strip an inline style property from them.",
    )
    source = p.add_mutually_exclusive_group()
    source.add_argument(
        "--export-root",
        type=Path,
        default=None,
        help="Work on an export directory (items/*.json + media.json) instead of the content API.",
    )
    source.add_argument(
        "--api",
        action="store_true",
        help="Use the content API (CONTENT_API_URL / CONTENT_API_TOKEN). Default when --export-root is omitted.",
    )
    p.add_argument("--media-map", type=Path, default=None,
                   help="media.json to resolve links with (defaults to <export_root>/media.json).")
    p.add_argument("--template", required=True, help="Template name items must be built from (e.g., Article).")
    p.add_argument("--name", default=None, help="Only process items with this exact name.")
    p.add_argument("--field", default=DEFAULT_FIELD, help=f"Rich-text field to rewrite (default {DEFAULT_FIELD}).")
    p.add_argument("--property", dest="property_name", default=DEFAULT_PROPERTY,
                   help=f"Inline CSS property to strip from markers (default {DEFAULT_PROPERTY}).")
    p.add_argument("--dry-run", action="store_true", help="Report changes without writing items.")
    p.add_argument("--stop-on-error", action="store_true", help="Abort on the first item that fails.")
    p.add_argument(
        "--progress-every",
        type=int,
        default=25,
        help="Log progress every N items (0 to disable).",
    )
    p.add_argument("-v", "--verbose", action="count", default=1, help="Increase verbosity (-v, -vv).")
    return p


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbosity=args.verbose)
    log = get_logger(artifact="link-icons-runner")

    if args.export_root is not None:
        export_root: Path = args.export_root.expanduser().resolve()
        if not export_root.is_dir():
            parser.error(f"export_root {export_root} is not a directory")
        media_path = args.media_map or (export_root / "media.json")
        if not media_path.exists():
            parser.error(f"media map not found at {media_path}; pass --media-map")
        try:
            resolve = MediaMapResolver(load_media_map(media_path))
        except ValueError as exc:
            parser.error(str(exc))
        store = ExportContentStore(export_root)
    else:
        try:
            api = api_mod.api_from_env()
        except ValueError:
            log.error("Set CONTENT_API_URL and CONTENT_API_TOKEN in the environment, or pass --export-root.")
            return 2
        resolve = ApiMediaResolver(api)
        store = ApiContentStore(api)

    try:
        stats = run_link_icons(
            store,
            template=args.template,
            name=args.name,
            field=args.field,
            property_name=args.property_name,
            resolve=resolve,
            dry_run=args.dry_run,
            progress_every=args.progress_every,
            stop_on_error=args.stop_on_error,
        )
    except (requests.RequestException, OSError, ValueError) as exc:
        log.error("aborted: %s", exc)
        return 1

    verb = "would update" if args.dry_run else "updated"
    print(f"{verb} {stats.changed if args.dry_run else stats.updated} of {stats.scanned} items "
          f"(markers added {stats.markers_added}, styles stripped {stats.styles_stripped}, "
          f"unresolved links {stats.unresolved}, failed {stats.failed})")

    unreadable = getattr(store, "unreadable", [])
    if unreadable:
        print(f"skipped {len(unreadable)} unreadable item files")

    return 1 if stats.failed or unreadable else 0


if __name__ == "__main__":
    raise SystemExit(main())
