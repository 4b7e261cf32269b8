"""Configuration management for Allegheny County data extraction."""

import os
from dataclasses import asdict, dataclass, field
from datetime import date
from pathlib import Path
from typing import List
from urllib.parse import urlencode, urljoin, urlparse
import logging

import yaml

from .lookups import MUNICIPALITY_NAMES

logger = logging.getLogger(__name__)

TIME_SERIES_POLICIES = ("replace-week", "skip-as-of")

PROFILE_PAGE = "MuniProfile.asp"
MUNI_MILLAGE_PAGE = "MillMuni.asp"
SCHOOL_MILLAGE_PAGE = "millsd.asp"


@dataclass
class RunConfig:
    """Configuration for a single collection run.

    Attributes:
        base_url: Root of the county web application (normalized to a trailing slash)
        output_dir: Directory holding the persisted CSV tables
        municipality_ids: Profile identifiers visited by a full run
        test_ids: Profile identifiers visited in test mode
        millage_years: Tax years fetched by the millage run
        politeness_delay: Fixed seconds to wait before every request
        request_timeout: HTTP request timeout in seconds
        user_agent: User agent string for HTTP requests
        time_series_policy: Same-period handling for the real-estate series,
            either 'replace-week' or 'skip-as-of'
        progress_every: Log a progress line every N entities
        certified_total_tolerance: Allowed gap (dollars) between the certified
            total and the sum of its components before a warning is logged
    """

    base_url: str = "https://apps.alleghenycounty.us/website/"
    output_dir: Path = field(default_factory=lambda: Path("data"))

    # Identifier ranges
    municipality_ids: List[int] = field(default_factory=lambda: list(range(1, len(MUNICIPALITY_NAMES) + 1)))
    test_ids: List[int] = field(default_factory=lambda: [1, 2, 3])
    millage_years: List[int] = field(default_factory=lambda: list(range(2018, date.today().year + 1)))

    # Fetch behavior
    politeness_delay: float = 1.0
    request_timeout: int = 30
    user_agent: str = "AlleghenyCivicExtractor/1.0 (civic-data; public records)"

    # Merge behavior
    time_series_policy: str = "replace-week"

    progress_every: int = 10
    certified_total_tolerance: float = 1.0

    # Output file names
    profiles_file: str = "muni-profiles.csv"
    muni_millage_file: str = "muni-millage-rates.csv"
    school_millage_file: str = "school-millage-rates.csv"
    county_millage_file: str = "county-millage-rates.csv"
    real_estate_file: str = "muni-real-estate-time-series.csv"

    def __post_init__(self):
        """Validate and normalize configuration."""
        self.base_url = self._normalize_base_url(self.base_url)

        if not urlparse(self.base_url).netloc:
            raise ValueError(f"Could not extract domain from base_url: {self.base_url}")

        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if not self.municipality_ids:
            raise ValueError("municipality_ids cannot be empty")

        out_of_range = [i for i in self.municipality_ids if i < 1 or i > len(MUNICIPALITY_NAMES)]
        if out_of_range:
            logger.warning(f"Identifiers outside 1..{len(MUNICIPALITY_NAMES)} will have no name: {out_of_range}")

        for year in self.millage_years:
            if not isinstance(year, int) or year < 2000 or year > 2100:
                raise ValueError(f"Invalid year: {year}. Must be integer between 2000 and 2100")

        if self.time_series_policy not in TIME_SERIES_POLICIES:
            raise ValueError(
                f"Unknown time_series_policy: {self.time_series_policy}. "
                f"Expected one of {', '.join(TIME_SERIES_POLICIES)}"
            )

        if self.politeness_delay < 0:
            raise ValueError("politeness_delay cannot be negative")

        logger.debug(f"Configuration initialized for {self.base_url}")
        logger.debug(f"Output dir: {self.output_dir}")

    @staticmethod
    def _normalize_base_url(url: str) -> str:
        """Normalize URL to include a scheme and a trailing slash.

        Args:
            url: Raw URL from user

        Returns:
            Normalized URL
        """
        url = url.strip()
        if not url.startswith(('http://', 'https://')):
            url = 'https://' + url
        if not url.endswith('/'):
            url += '/'
        return url

    @classmethod
    def from_yaml(cls, path: Path, **overrides) -> "RunConfig":
        """Load configuration from a YAML file; keyword overrides take precedence."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        data.update(overrides)
        return cls(**data)

    @classmethod
    def from_env(cls, **overrides) -> "RunConfig":
        """Load configuration from ALLEGHENY_* environment variables; keyword overrides take precedence."""
        kwargs = {}
        if os.getenv("ALLEGHENY_BASE_URL"):
            kwargs['base_url'] = os.getenv("ALLEGHENY_BASE_URL")
        if os.getenv("ALLEGHENY_OUTPUT_DIR"):
            kwargs['output_dir'] = Path(os.getenv("ALLEGHENY_OUTPUT_DIR"))
        if os.getenv("ALLEGHENY_DELAY"):
            kwargs['politeness_delay'] = float(os.getenv("ALLEGHENY_DELAY"))
        if os.getenv("ALLEGHENY_YEARS"):
            kwargs['millage_years'] = [int(y) for y in os.getenv("ALLEGHENY_YEARS").split(",") if y]
        if os.getenv("ALLEGHENY_TIME_SERIES_POLICY"):
            kwargs['time_series_policy'] = os.getenv("ALLEGHENY_TIME_SERIES_POLICY")
        kwargs.update(overrides)
        return cls(**kwargs)

    def to_yaml(self, path: Path):
        """Save configuration to a YAML file."""
        data = asdict(self)
        data['output_dir'] = str(data['output_dir'])
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)

    def get_output_path(self, filename: str) -> Path:
        """Get full path for an output file.

        Args:
            filename: Name of the output file

        Returns:
            Full path in output directory
        """
        return self.output_dir / filename

    def build_url(self, page: str, key: str, value) -> str:
        """Synthesize a page URL of the form ``base/page?key=value``.

        Args:
            page: Page name relative to the base URL
            key: Query parameter name ('muni' or 'Year')
            value: Query parameter value

        Returns:
            Absolute URL
        """
        return f"{urljoin(self.base_url, page)}?{urlencode({key: value})}"

    def profile_url(self, entity_id: int) -> str:
        return self.build_url(PROFILE_PAGE, 'muni', entity_id)

    def muni_millage_url(self, year: int) -> str:
        return self.build_url(MUNI_MILLAGE_PAGE, 'Year', year)

    def school_millage_url(self, year: int) -> str:
        return self.build_url(SCHOOL_MILLAGE_PAGE, 'Year', year)
