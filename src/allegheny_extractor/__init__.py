"""Allegheny County civic data extraction package.

Collects municipal profiles, municipal/school/county millage rates and
weekly certified real-estate values from the county web application, and
reconciles each run with the CSV tables kept from earlier runs.
"""

__version__ = "1.0.0"

from .config import RunConfig
from .utils import setup_logging
from .fetch import FetchError, WebFetcher
from .document import Document
from .queries import LabelQuery, TextQuery, XPathQuery
from .extractors import FieldDescriptor, extract, extract_field
from .builders import build_profile, build_real_estate_snapshot, build_muni_millage, build_school_millage
from .collector import collect
from .csv_io import TableIOError, load_table, save_table
from .history import merge_reference_table, merge_time_series
from .pipeline import run_profiles, run_millage, run_real_estate

__all__ = [
    # Configuration
    'RunConfig',

    # Utilities
    'setup_logging',

    # Fetching
    'WebFetcher',
    'FetchError',
    'Document',

    # Field extraction
    'XPathQuery',
    'LabelQuery',
    'TextQuery',
    'FieldDescriptor',
    'extract',
    'extract_field',

    # Record builders
    'build_profile',
    'build_real_estate_snapshot',
    'build_muni_millage',
    'build_school_millage',
    'collect',

    # Persistence
    'TableIOError',
    'load_table',
    'save_table',
    'merge_reference_table',
    'merge_time_series',

    # Pipeline
    'run_profiles',
    'run_millage',
    'run_real_estate',
]
