from __future__ import annotations

import logging
from collections import Counter

from models import ResourceKind
from tests.conftest import JPG_ID, PDF_ID, ZIP_ID, DictResolver, media_href
from utils.fragment import parse_fragment, serialize_fragment
from utils.link_annotator import annotate


def _annotate(html: str, resolver):
    fragment, changed = annotate(parse_fragment(html), resolver)
    return serialize_fragment(fragment), changed


def test_pdf_link_gets_marker_prepended():
    html = '<a href="~/media/{G}.ashx">Link</a>'
    resolver = DictResolver({"{G}": ResourceKind.PDF})

    out, changed = _annotate(html, resolver)

    assert changed is True
    # bs4 serializes attributes in sorted order
    assert out == '<a href="~/media/{G}.ashx"><em aria-hidden="true" class="fa fa-file-pdf-o"></em>Link</a>'
    assert resolver.calls == ["{G}"]


def test_zip_link_gets_archive_marker(resolver):
    out, changed = _annotate(f'<a href="{media_href(ZIP_ID)}">Bundle</a>', resolver)

    assert changed is True
    assert out.count("fa-file-archive-o") == 1
    assert "fa-file-pdf-o" not in out
    assert out.endswith("</em>Bundle</a>")


def test_other_kind_never_changes_link(resolver):
    html = f'<p><a href="{media_href(JPG_ID)}">Photo</a></p>'

    out, changed = _annotate(html, resolver)

    assert changed is False
    assert out == html


def test_annotate_twice_is_noop(resolver):
    html = (
        f'<p><a href="{media_href(PDF_ID)}">Report</a> and '
        f'<a href="{media_href(ZIP_ID)}">Sources</a></p>'
    )
    first, changed_first = annotate(parse_fragment(html), resolver)
    once = serialize_fragment(first)

    second, changed_second = annotate(parse_fragment(once), resolver)

    assert changed_first is True
    assert changed_second is False
    assert serialize_fragment(second) == once


def test_pdf_token_appears_exactly_once_more(resolver):
    html = f'<div><a href="{media_href(PDF_ID)}"><span>Report</span></a></div>'
    before = html.count("fa-file-pdf-o")

    out, _ = _annotate(html, resolver)

    assert out.count("fa-file-pdf-o") == before + 1


def test_existing_token_anywhere_under_link_suppresses_insert(resolver):
    html = f'<a href="{media_href(PDF_ID)}"><span><i class="fa fa-file-pdf-o"></i></span> Report</a>'

    out, changed = _annotate(html, resolver)

    assert changed is False
    assert out == html


def test_wrong_kind_marker_gets_a_second_marker(resolver):
    html = f'<a href="{media_href(PDF_ID)}"><em class="fa fa-file-archive-o"></em>Report</a>'

    out, changed = _annotate(html, resolver)

    assert changed is True
    assert "fa-file-archive-o" in out
    assert out.count("<em") == 2
    assert out.index("fa-file-pdf-o") < out.index("fa-file-archive-o")


def test_non_media_links_are_ignored_without_resolving(resolver):
    html = (
        '<a href="https://example.org/file.pdf">External</a>'
        '<a href="/about-us">Internal</a>'
        '<a name="top">Anchor</a>'
        '<a href="~/media/folder/file.pdf">Not ashx</a>'
    )

    out, changed = _annotate(html, resolver)

    assert changed is False
    assert resolver.calls == []


def test_media_link_with_query_string_is_matched(resolver):
    out, changed = _annotate(f'<a href="{media_href(PDF_ID)}?la=en">Report</a>', resolver)

    assert changed is True
    assert "fa-file-pdf-o" in out


def test_unresolved_link_is_skipped_and_logged(resolver, caplog):
    html = (
        '<a href="~/media/{DEADBEEF}.ashx">Gone</a>'
        f'<a href="{media_href(PDF_ID)}">Report</a>'
    )
    tally: Counter = Counter()

    with caplog.at_level(logging.WARNING, logger="utils.link_annotator"):
        fragment, changed = annotate(parse_fragment(html), resolver, tally=tally)

    out = serialize_fragment(fragment)
    assert changed is True
    assert out.startswith('<a href="~/media/{DEADBEEF}.ashx">Gone</a>')
    assert out.count("fa-file-pdf-o") == 1
    assert tally["unresolved"] == 1
    assert tally["markers_added"] == 1
    assert any("not resolved" in rec.message for rec in caplog.records)
