"""Parsed HTML document shared by every query strategy."""

import logging
from typing import Optional, Union

import lxml.html
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


class Document:
    """A fetched page, parsed lazily for both query strategies.

    Structural paths are evaluated with lxml (BeautifulSoup has no XPath);
    label and text predicates walk the BeautifulSoup tree.
    """

    def __init__(self, html: Union[str, bytes], url: str = ""):
        if isinstance(html, bytes):
            html = html.decode('utf-8', errors='replace')
        self.html = html
        self.url = url
        self._tree = None
        self._soup: Optional[BeautifulSoup] = None

    @property
    def tree(self):
        """lxml element tree for XPath evaluation."""
        if self._tree is None:
            self._tree = lxml.html.fromstring(self.html)
        return self._tree

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, 'html.parser')
        return self._soup

    def __repr__(self) -> str:
        return f"Document(url={self.url!r}, length={len(self.html)})"
