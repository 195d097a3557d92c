"""Parse and serialize rich-text HTML fragments stored in item fields."""
from __future__ import annotations

from bs4 import BeautifulSoup, ParserRejectedMarkup


class MalformedFragmentError(ValueError):
    """Raised when a field value cannot be parsed as an HTML fragment."""


def parse_fragment(html: str) -> BeautifulSoup:
    if not isinstance(html, str):
        raise MalformedFragmentError(f"expected HTML text, got {type(html).__name__}")
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        raise MalformedFragmentError(str(exc)) from exc


def serialize_fragment(soup: BeautifulSoup) -> str:
    """
    Serialize soup without adding <html>/<body> wrappers for fragments.
    """
    if soup.body:
        return "".join(str(child) for child in soup.body.contents)
    return str(soup)


__all__ = ["MalformedFragmentError", "parse_fragment", "serialize_fragment"]
