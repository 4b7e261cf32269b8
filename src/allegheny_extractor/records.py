"""Record schemas for every persisted dataset."""

from dataclasses import asdict, dataclass, fields
from typing import List, Optional, Sequence, Type

import pandas as pd

# Millage years shown on the profile page's rate grid, left to right.
PROFILE_MILLAGE_YEARS = (2023, 2024, 2025)


@dataclass
class ProfileRecord:
    """One municipality's profile page."""

    municipality: Optional[str] = None
    muni_code: Optional[str] = None
    county_council_district: Optional[str] = None
    council_representative: Optional[str] = None
    senatorial_district: Optional[str] = None
    legislative_district: Optional[str] = None
    congressional_district: Optional[str] = None
    council_of_government: Optional[str] = None
    police_chief: Optional[str] = None
    fire_chief: Optional[str] = None
    ems_agency: Optional[str] = None
    sanitary_authority: Optional[str] = None
    school_district: Optional[str] = None
    contact_name: Optional[str] = None
    contact_address: Optional[str] = None
    contact_phone: Optional[str] = None
    median_property_value: Optional[float] = None
    certified_taxable_value: Optional[float] = None
    certified_exempt_value: Optional[float] = None
    certified_purta_value: Optional[float] = None
    certified_all_real_estate: Optional[float] = None
    millage_2023_municipality: Optional[float] = None
    millage_2024_municipality: Optional[float] = None
    millage_2025_municipality: Optional[float] = None
    millage_2023_school: Optional[float] = None
    millage_2024_school: Optional[float] = None
    millage_2025_school: Optional[float] = None
    square_miles: Optional[float] = None
    location: Optional[str] = None
    geography: Optional[str] = None


@dataclass
class MuniMillageRecord:
    municipality: str
    tax_year: int
    millage: float
    land_millage: Optional[float] = None
    muni_code: Optional[str] = None


@dataclass
class SchoolMillageRecord:
    school: str
    tax_year: int
    millage: float
    land_millage: Optional[float] = None
    school_code: Optional[str] = None


@dataclass
class CountyMillageRecord:
    county: str
    tax_year: int
    millage: float


@dataclass
class RealEstateSnapshot:
    """Certified values for one municipality as of the published date."""

    municipality: Optional[str] = None
    muni_code: Optional[str] = None
    value_as_of_date: Optional[str] = None
    scraped_at: Optional[str] = None
    taxable_value: Optional[float] = None
    exempt_value: Optional[float] = None
    purta_value: Optional[float] = None
    all_real_estate: Optional[float] = None
    median_residential_value: Optional[float] = None


# Persisted column orders
PROFILE_COLUMNS = [f.name for f in fields(ProfileRecord)]
MUNI_MILLAGE_COLUMNS = ['municipality', 'muni_code', 'tax_year', 'millage', 'land_millage']
SCHOOL_MILLAGE_COLUMNS = ['school', 'school_code', 'tax_year', 'millage', 'land_millage']
COUNTY_MILLAGE_COLUMNS = ['county', 'tax_year', 'millage']
METRIC_COLUMNS = [
    'taxable_value_wow_change',
    'taxable_value_wow_pct',
    'taxable_value_ytd_change',
    'taxable_value_ytd_pct',
]
REAL_ESTATE_COLUMNS = [f.name for f in fields(RealEstateSnapshot)] + ['scrape_week'] + METRIC_COLUMNS

# Columns always persisted as text
CODE_COLUMNS = ['muni_code', 'school_code']
DATE_COLUMNS = ['value_as_of_date', 'scraped_at', 'scrape_week']


def records_to_frame(records: Sequence, record_type: Type, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Assemble records into a DataFrame with a stable column order.

    An empty batch still yields the full set of columns so later merges see
    a consistent schema.

    Args:
        records: Dataclass instances of ``record_type``
        record_type: Dataclass used to derive columns when none are given
        columns: Explicit column order (extra record fields are dropped)

    Returns:
        DataFrame with one row per record
    """
    if columns is None:
        columns = [f.name for f in fields(record_type)]

    df = pd.DataFrame([asdict(r) for r in records], columns=[f.name for f in fields(record_type)])
    for col in columns:
        if col not in df.columns:
            df[col] = pd.NA
    return df[columns]
