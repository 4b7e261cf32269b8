"""Field extraction: run a query, clean the text, never raise."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .document import Document
from .queries import DocumentQuery
from .utils import clean_numeric, clean_text, extract_dollar_amount, parse_as_of_date

logger = logging.getLogger(__name__)

# Absence marker shared by every field; persisted as an empty CSV cell.
MISSING = None

Cleaner = Callable[[str], Any]


def as_text(raw: str) -> Optional[str]:
    return clean_text(raw)


def as_number(raw: str) -> Optional[float]:
    return clean_numeric(raw)


def text_until(marker: str) -> Cleaner:
    """Cleaner that drops a known trailing label, e.g. an embedded link caption."""
    def _clean(raw: str) -> Optional[str]:
        return clean_text(raw, truncate_at=marker)
    return _clean


def without_prefix(prefix: str) -> Cleaner:
    """Cleaner that removes a leading label such as ``Phone:``."""
    def _clean(raw: str) -> Optional[str]:
        return clean_text(raw.replace(prefix, '', 1))
    return _clean


def as_dollar_amount(raw: str) -> Optional[float]:
    return extract_dollar_amount(raw)


def as_iso_date(raw: str) -> Optional[str]:
    return parse_as_of_date(raw)


@dataclass(frozen=True)
class FieldDescriptor:
    """How to obtain one output field from a document.

    Attributes:
        name: Output field name
        query: Where the value lives
        cleaner: Turns the raw node text into a typed value (or None)
    """

    name: str
    query: DocumentQuery
    cleaner: Cleaner = as_text


def extract(document: Document, query: DocumentQuery, default: Any = MISSING) -> Any:
    """Return the raw text of the first match, or ``default``.

    No match, an empty match, and any fault during lookup all yield
    ``default``; this function does not raise.

    Args:
        document: Parsed page
        query: Query locating the node
        default: Value returned when nothing usable is found

    Returns:
        Trimmed node text or ``default``
    """
    try:
        text = query.first(document)
    except Exception as e:
        logger.debug(f"Query {query!r} failed on {document.url}: {e}")
        return default

    if text is None:
        return default

    text = text.strip()
    return text if text else default


def extract_field(document: Document, descriptor: FieldDescriptor, default: Any = MISSING) -> Any:
    """Extract and clean one field.

    Args:
        document: Parsed page
        descriptor: Field to extract
        default: Value returned on a miss or an unparseable value

    Returns:
        Cleaned value or ``default``
    """
    raw = extract(document, descriptor.query, default=None)
    if raw is None:
        logger.debug(f"No match for field '{descriptor.name}' on {document.url}")
        return default

    try:
        value = descriptor.cleaner(raw)
    except Exception as e:
        logger.debug(f"Cleaning failed for field '{descriptor.name}' ({raw!r}): {e}")
        return default

    return default if value is None else value


def extract_fields(document: Document, descriptors) -> Dict[str, Any]:
    """Extract every descriptor independently; one miss never blocks another."""
    return {d.name: extract_field(document, d) for d in descriptors}
