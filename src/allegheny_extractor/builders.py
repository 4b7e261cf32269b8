"""Record builders: one fetched page in, one typed record (or row list) out."""

import logging
import re
from dataclasses import fields, replace
from datetime import datetime
from typing import List, Optional, Tuple

import pandas as pd

from .config import RunConfig
from .document import Document
from .extractors import (
    FieldDescriptor,
    as_dollar_amount,
    as_iso_date,
    as_number,
    extract_field,
    extract_fields,
    text_until,
    without_prefix,
)
from .lookups import COUNTY_LABEL, describe, muni_code_for, school_code_for
from .queries import LabelQuery, TextQuery, XPathQuery
from .records import (
    PROFILE_MILLAGE_YEARS,
    CountyMillageRecord,
    MuniMillageRecord,
    ProfileRecord,
    RealEstateSnapshot,
    SchoolMillageRecord,
)
from .utils import clean_numeric, clean_text

logger = logging.getLogger(__name__)

# Value grids on the profile page
VALUES_GRID = "//*[@id='no-more-tables']"
CERTIFIED_ROW = f"{VALUES_GRID}/table[1]/tbody/tr[1]"
AS_OF_ROW = f"{VALUES_GRID}/table[1]/tbody/tr[2]"
MILLAGE_GRID = f"{VALUES_GRID}/table[2]/tbody"
CONTACT_BOX = "//div[@class='migratebox']"
PROFILE_BODY = "/html/body/section/center/table/tbody/tr/td/div"

MEDIAN_PHRASE = "Taxable Residential Median Value"

# The millage pages open with two malformed header rows.
MILLAGE_HEADER_ROWS = 2

FOOTNOTE_RE = re.compile(r'\s+\d+$')
# Bullet and degree glyphs, including their mis-decoded forms, that pollute school names
SCHOOL_NAME_NOISE_RE = re.compile('[º•\u0095ยบ]')
WHITESPACE_RE = re.compile(r'\s+')


# Rate grid rows, each with one column per year of PROFILE_MILLAGE_YEARS
MILLAGE_GRID_ROWS = ((2, 'municipality'), (3, 'school'))

MILLAGE_FIELDS = [
    FieldDescriptor(f'millage_{year}_{kind}', XPathQuery(f"{MILLAGE_GRID}/tr[{row}]/td[{column}]"), as_number)
    for row, kind in MILLAGE_GRID_ROWS
    for column, year in enumerate(PROFILE_MILLAGE_YEARS, 2)
]

PROFILE_FIELDS = [
    FieldDescriptor('county_council_district', LabelQuery('County Council District:')),
    FieldDescriptor('council_representative', LabelQuery('Council Representative:')),
    FieldDescriptor('senatorial_district', LabelQuery('Senatorial District:', exact=False)),
    FieldDescriptor('legislative_district', LabelQuery('Legislative District:', exact=False)),
    FieldDescriptor('congressional_district', LabelQuery('Congressional District:', exact=False)),
    FieldDescriptor('council_of_government', LabelQuery('Council of Government:', exact=False)),
    FieldDescriptor('police_chief', LabelQuery('Police Chief:'), text_until('Police Department Info')),
    FieldDescriptor('fire_chief', LabelQuery('Fire Chief:'), text_until('Fire Department Info')),
    FieldDescriptor('ems_agency', LabelQuery('EMS Agency:')),
    FieldDescriptor('sanitary_authority', LabelQuery('Sanitary Authority:', exact=False)),
    FieldDescriptor('school_district', LabelQuery('School District:', exact=False, label_tag=None)),
    FieldDescriptor('contact_name', XPathQuery(f"{CONTACT_BOX}//li[1]")),
    FieldDescriptor('contact_address', XPathQuery(f"{CONTACT_BOX}//li[2]")),
    FieldDescriptor('contact_phone', XPathQuery(f"{CONTACT_BOX}//li[contains(., 'Phone:')]"), without_prefix('Phone:')),
    FieldDescriptor('median_property_value', TextQuery(MEDIAN_PHRASE), as_dollar_amount),
    FieldDescriptor('certified_taxable_value', XPathQuery(f"{CERTIFIED_ROW}/td[2]"), as_number),
    FieldDescriptor('certified_exempt_value', XPathQuery(f"{CERTIFIED_ROW}/td[3]"), as_number),
    FieldDescriptor('certified_purta_value', XPathQuery(f"{CERTIFIED_ROW}/td[4]"), as_number),
    FieldDescriptor('certified_all_real_estate', XPathQuery(f"{CERTIFIED_ROW}/td[5]"), as_number),
    *MILLAGE_FIELDS,
    FieldDescriptor('square_miles', LabelQuery('Square Miles:'), as_number),
    FieldDescriptor('location', XPathQuery(f"{PROFILE_BODY}/table/tbody/tr[13]/td[2]")),
    FieldDescriptor('geography', XPathQuery(f"{PROFILE_BODY}/p[3]")),
]

AS_OF_DATE_FIELD = FieldDescriptor('value_as_of_date', XPathQuery(f"{AS_OF_ROW}/td[1]"), as_iso_date)

SNAPSHOT_FIELDS = [
    FieldDescriptor('taxable_value', XPathQuery(f"{AS_OF_ROW}/td[2]"), as_number),
    FieldDescriptor('exempt_value', XPathQuery(f"{AS_OF_ROW}/td[3]"), as_number),
    FieldDescriptor('purta_value', XPathQuery(f"{AS_OF_ROW}/td[4]"), as_number),
    FieldDescriptor('all_real_estate', XPathQuery(f"{AS_OF_ROW}/td[5]"), as_number),
    FieldDescriptor('median_residential_value', TextQuery(MEDIAN_PHRASE), as_dollar_amount),
]


def normalize_text_fields(record):
    """Trim text fields, drop stray pipes, and turn blank strings into missing."""
    updates = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, str):
            updates[f.name] = clean_text(value)
    return replace(record, **updates)


def build_profile(entity_id: int, fetcher, config: RunConfig) -> Optional[ProfileRecord]:
    """Fetch and assemble one municipality profile.

    Each field is extracted independently and defaults to missing on its
    own; only a fetch failure or an unexpected fault drops the whole record.

    Args:
        entity_id: Profile identifier (1..130)
        fetcher: Object with ``fetch(url) -> Document``
        config: Run configuration (for URL synthesis)

    Returns:
        ProfileRecord, or None if the page could not be processed
    """
    url = config.profile_url(entity_id)
    logger.debug(f"Scraping municipality {entity_id}: {url}")

    try:
        document = fetcher.fetch(url)
        entity = describe(entity_id)

        values = extract_fields(document, PROFILE_FIELDS)
        record = ProfileRecord(municipality=entity.name, muni_code=entity.muni_code, **values)
        return normalize_text_fields(record)
    except Exception as e:
        logger.error(f"Error scraping municipality {entity_id}: {e}")
        return None


def extract_value_as_of_date(document: Document) -> Optional[str]:
    """Return the ISO "Value As Of" date printed beside the current values."""
    return extract_field(document, AS_OF_DATE_FIELD)


def fetch_value_as_of_date(entity_id: int, fetcher, config: RunConfig) -> Optional[str]:
    """Read the as-of date once from a representative profile page.

    Every profile page of a run is assumed to publish the same date, so one
    lookup replaces a lookup per municipality.
    """
    try:
        document = fetcher.fetch(config.profile_url(entity_id))
    except Exception as e:
        logger.warning(f"Could not fetch municipality {entity_id} for the 'Value As Of' date: {e}")
        return None
    return extract_value_as_of_date(document)


def build_real_estate_snapshot(
    entity_id: int,
    fetcher,
    config: RunConfig,
    value_as_of_date: Optional[str] = None,
    scraped_at: Optional[str] = None,
) -> Optional[RealEstateSnapshot]:
    """Fetch one municipality's current certified values.

    Args:
        entity_id: Profile identifier (1..130)
        fetcher: Object with ``fetch(url) -> Document``
        config: Run configuration
        value_as_of_date: Run-wide as-of date; read from this page when None
        scraped_at: Run timestamp; defaults to now

    Returns:
        RealEstateSnapshot, or None if the page could not be processed
    """
    url = config.profile_url(entity_id)

    try:
        document = fetcher.fetch(url)
        entity = describe(entity_id)

        if value_as_of_date is None:
            value_as_of_date = extract_value_as_of_date(document)

        values = extract_fields(document, SNAPSHOT_FIELDS)
        return RealEstateSnapshot(
            municipality=entity.name,
            muni_code=entity.muni_code,
            value_as_of_date=value_as_of_date,
            scraped_at=scraped_at or datetime.now().isoformat(sep=' ', timespec='seconds'),
            **values,
        )
    except Exception as e:
        logger.error(f"Error scraping municipality {entity_id}: {e}")
        return None


def _millage_rows(document: Document):
    rows = document.soup.select('table tr')
    return rows[MILLAGE_HEADER_ROWS:]


def _cell_text(cell) -> Optional[str]:
    return clean_text(cell.get_text(' '))


def clean_muni_name(name: Optional[str]) -> Optional[str]:
    """Drop trailing footnote numbers ("Aleppo Township 1" -> "Aleppo Township")."""
    if name is None:
        return None
    return clean_text(FOOTNOTE_RE.sub('', name))


def clean_school_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    name = SCHOOL_NAME_NOISE_RE.sub('', name)
    return WHITESPACE_RE.sub(' ', name).strip().upper() or None


def parse_muni_millage(document: Document, year: int) -> List[MuniMillageRecord]:
    """Parse the municipal millage table for one tax year.

    Columns: name, (two unused), millage, optional land millage. Rows without
    a name or a parseable rate are discarded. The county row is kept here and
    split out by ``split_county_rows``.

    Args:
        document: MillMuni page for ``year``
        year: Tax year the page describes

    Returns:
        One record per municipality (and the county) in page order
    """
    records = []
    for row in _millage_rows(document):
        cells = row.find_all('td')
        if len(cells) < 4:
            continue

        name = _cell_text(cells[0])
        millage = clean_numeric(cells[3].get_text())
        land_millage = clean_numeric(cells[4].get_text()) if len(cells) >= 5 else None

        if not name or millage is None:
            continue

        records.append(MuniMillageRecord(
            municipality=name,
            tax_year=year,
            millage=millage,
            land_millage=land_millage,
        ))

    logger.info(f"  Found {len(records)} municipal millage entries for {year}")
    return records


def parse_school_millage(document: Document, year: int) -> List[SchoolMillageRecord]:
    """Parse the school district millage table for one tax year.

    Columns: name, (one unused), millage, optional land millage. Names are
    upper-cased and stripped of bullet glyphs; a district listed twice with
    identical values is kept once.
    """
    records = []
    seen = set()
    for row in _millage_rows(document):
        cells = row.find_all('td')
        if len(cells) < 3:
            continue

        school = clean_school_name(_cell_text(cells[0]))
        millage = clean_numeric(cells[2].get_text())
        land_millage = clean_numeric(cells[3].get_text()) if len(cells) >= 4 else None

        if not school or millage is None:
            continue

        key = (school, millage, land_millage)
        if key in seen:
            continue
        seen.add(key)

        records.append(SchoolMillageRecord(
            school=school,
            tax_year=year,
            millage=millage,
            land_millage=land_millage,
            school_code=school_code_for(school),
        ))

    logger.info(f"  Found {len(records)} school districts for {year}")
    return records


def split_county_rows(
    records: List[MuniMillageRecord],
) -> Tuple[List[MuniMillageRecord], List[CountyMillageRecord]]:
    """Separate the county pseudo-entity from the municipal rows.

    Municipal rows get footnotes removed from their names and their code
    resolved; rows whose code cannot be resolved keep ``muni_code=None`` and
    are dropped later by the reference-table merge.
    """
    municipal = []
    county = []
    for record in records:
        if record.municipality == COUNTY_LABEL:
            county.append(CountyMillageRecord(
                county=COUNTY_LABEL,
                tax_year=record.tax_year,
                millage=record.millage,
            ))
            continue

        name = clean_muni_name(record.municipality)
        municipal.append(replace(record, municipality=name, muni_code=muni_code_for(name)))

    return municipal, county


def build_muni_millage(year: int, fetcher, config: RunConfig) -> Optional[List[MuniMillageRecord]]:
    """Fetch and parse one year of municipal millage; None on failure."""
    logger.info(f"Scraping municipal millage for {year}...")
    try:
        document = fetcher.fetch(config.muni_millage_url(year))
        return parse_muni_millage(document, year)
    except Exception as e:
        logger.error(f"Error scraping municipal millage for year {year}: {e}")
        return None


def build_school_millage(year: int, fetcher, config: RunConfig) -> Optional[List[SchoolMillageRecord]]:
    """Fetch and parse one year of school millage; None on failure."""
    logger.info(f"Scraping school district millage for {year}...")
    try:
        document = fetcher.fetch(config.school_millage_url(year))
        return parse_school_millage(document, year)
    except Exception as e:
        logger.error(f"Error scraping school millage for year {year}: {e}")
        return None


def certified_total_violations(df: pd.DataFrame, tolerance: float = 1.0) -> pd.DataFrame:
    """Rows whose certified total differs from taxable + exempt + PURTA.

    The county never publishes this identity as a rule, so violations are
    reported rather than corrected. Rows with any missing component are not
    judged.

    Args:
        df: Profile table
        tolerance: Largest accepted absolute difference, in dollars

    Returns:
        Subset of ``df`` with an added ``certified_total_gap`` column
    """
    parts = ['certified_taxable_value', 'certified_exempt_value', 'certified_purta_value']
    total = 'certified_all_real_estate'

    if df.empty or not set(parts + [total]).issubset(df.columns):
        return df.iloc[0:0].assign(certified_total_gap=pd.Series(dtype=float))

    values = df[parts + [total]].apply(pd.to_numeric, errors='coerce')
    gap = values[total] - values[parts].sum(axis=1, min_count=len(parts))
    mask = gap.abs() > tolerance

    violations = df[mask.fillna(False)].copy()
    violations['certified_total_gap'] = gap[mask.fillna(False)]

    for _, row in violations.iterrows():
        logger.warning(
            f"Certified total for {row.get('municipality')} differs from its components "
            f"by {row['certified_total_gap']:,.0f}"
        )

    return violations
