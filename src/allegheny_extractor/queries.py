"""Document queries: locate the text of one node by path or by label.

Two families of query are used by the field descriptors:

- ``XPathQuery`` follows an absolute structural path. It is brittle against
  markup drift but is the only option where the page carries no semantic
  anchor (the certified-value and millage grids).
- ``LabelQuery`` and ``TextQuery`` match on label text, e.g. "the cell after
  the cell whose bold label is 'Fire Chief:'". They survive layout shifts but
  break when the label wording changes.

Every query returns the text of its first match, or None.
"""

import logging
import re
from typing import List, Optional

from bs4 import Tag

from .document import Document

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r'\s+')


def _normalize_label(text: str) -> str:
    # The source markup is inconsistent about spacing ("Council  of Government:")
    return WHITESPACE_RE.sub(' ', text or '').strip()


class DocumentQuery:
    """Interface for locating a value inside a parsed document."""

    def find_all(self, document: Document) -> List[str]:
        """Return the raw text of every matching node, in document order."""
        raise NotImplementedError

    def first(self, document: Document) -> Optional[str]:
        """Return the raw text of the first matching node, or None."""
        matches = self.find_all(document)
        return matches[0] if matches else None


class XPathQuery(DocumentQuery):
    """Absolute or relative XPath evaluated against the lxml tree.

    Paths copied from a browser include ``tbody`` elements that the server's
    markup may not contain; when a path with ``tbody`` matches nothing it is
    retried without them.
    """

    def __init__(self, path: str):
        self.path = path

    def find_all(self, document: Document) -> List[str]:
        nodes = document.tree.xpath(self.path)
        if not nodes and '/tbody' in self.path:
            nodes = document.tree.xpath(self.path.replace('/tbody', ''))
        return [_node_text(node) for node in nodes]

    def __repr__(self) -> str:
        return f"XPathQuery({self.path!r})"


class LabelQuery(DocumentQuery):
    """Value cell that follows a label cell in the same table row.

    Args:
        label: Label text, e.g. "Fire Chief:"
        exact: Require the label to equal ``label`` rather than contain it
        label_tag: Tag inside the label cell holding the label (``'b'`` on the
            profile pages); None to match the label cell's own text
    """

    def __init__(self, label: str, exact: bool = True, label_tag: Optional[str] = 'b'):
        self.label = _normalize_label(label)
        self.exact = exact
        self.label_tag = label_tag

    def _matches(self, text: str) -> bool:
        text = _normalize_label(text)
        return text == self.label if self.exact else self.label in text

    def _is_label_cell(self, td: Tag) -> bool:
        if self.label_tag is None:
            return self._matches(td.get_text(' '))
        return any(
            self._matches(child.get_text(' '))
            for child in td.find_all(self.label_tag, recursive=False)
        )

    def find_all(self, document: Document) -> List[str]:
        values = []
        for td in document.soup.find_all('td'):
            if not self._is_label_cell(td):
                continue
            value_cell = td.find_next_sibling('td')
            if value_cell is not None:
                values.append(value_cell.get_text(' '))
        return values

    def __repr__(self) -> str:
        return f"LabelQuery({self.label!r}, exact={self.exact}, label_tag={self.label_tag!r})"


class TextQuery(DocumentQuery):
    """Innermost element whose own text contains a phrase.

    Used for sentences that carry both a label and a value, such as
    "Taxable Residential Median Value as of 1/8/2026: $137,800".
    """

    def __init__(self, phrase: str, tag: Optional[str] = None):
        self.phrase = phrase
        self.tag = tag

    def find_all(self, document: Document) -> List[str]:
        values = []
        for string in document.soup.find_all(string=lambda s: s and self.phrase in s):
            parent = string.parent
            if self.tag is not None and parent.name != self.tag:
                parent = parent.find_parent(self.tag)
                if parent is None:
                    continue
            values.append(parent.get_text(' '))
        return values

    def __repr__(self) -> str:
        return f"TextQuery({self.phrase!r}, tag={self.tag!r})"


def _node_text(node) -> str:
    # xpath() may yield attribute values or text nodes as plain strings
    if isinstance(node, str):
        return str(node)
    return node.text_content()
