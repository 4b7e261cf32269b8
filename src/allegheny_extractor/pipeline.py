"""Orchestration of the three collection runs: profiles, millage, real estate."""

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from functools import partial
from typing import Callable, Dict, Iterator, List, Optional

import pandas as pd

from .builders import (
    build_muni_millage,
    build_profile,
    build_real_estate_snapshot,
    build_school_millage,
    certified_total_violations,
    clean_muni_name,
    fetch_value_as_of_date,
    split_county_rows,
)
from .collector import collect
from .config import RunConfig
from .csv_io import TableIOError, load_table, save_table
from .fetch import WebFetcher
from .history import MergeResult, merge_reference_table, merge_time_series
from .records import (
    COUNTY_MILLAGE_COLUMNS,
    CountyMillageRecord,
    MUNI_MILLAGE_COLUMNS,
    MuniMillageRecord,
    PROFILE_COLUMNS,
    ProfileRecord,
    RealEstateSnapshot,
    SCHOOL_MILLAGE_COLUMNS,
    SchoolMillageRecord,
    records_to_frame,
)
from .utils import snapshot_week

logger = logging.getLogger(__name__)


def _step(title: str) -> None:
    logger.info("\n" + "=" * 80)
    logger.info(title)
    logger.info("=" * 80)


@contextmanager
def _fetcher_for(config: RunConfig, fetcher=None) -> Iterator:
    """Use the given fetcher, or open (and later close) a WebFetcher."""
    if fetcher is not None:
        yield fetcher
        return
    with WebFetcher(config) as owned:
        yield owned


def _fetch_counts(fetcher) -> Dict[str, int]:
    counts = {
        'pages_fetched': getattr(fetcher, 'fetched', 0),
        'pages_failed': getattr(fetcher, 'failed', 0),
    }
    logger.info(f"Fetched: {counts['pages_fetched']}, Failed: {counts['pages_failed']}")
    return counts


def _flatten(batches: List[list]) -> list:
    return [record for batch in batches for record in batch]


def _persist_reference(
    df: pd.DataFrame,
    config: RunConfig,
    filename: str,
    **merge_kwargs,
) -> MergeResult:
    path = config.get_output_path(filename)
    existing = load_table(path)
    result = merge_reference_table(df, existing, **merge_kwargs)
    if existing is not None:
        logger.info(f"  Merged with existing {filename} ({len(existing)} rows)")
    save_table(result.table, path)
    return result


def _clean_existing_muni_names(df: pd.DataFrame) -> pd.DataFrame:
    # Older files were written before footnote numbers were stripped from names
    if 'municipality' in df.columns:
        df['municipality'] = df['municipality'].map(lambda v: clean_muni_name(v) if isinstance(v, str) else v)
    return df


def run_profiles(
    config: RunConfig,
    ids: Optional[List[int]] = None,
    fetcher=None,
    persist: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """Collect municipal profiles and merge them into the profile table.

    Args:
        config: Run configuration
        ids: Profile identifiers (defaults to ``config.municipality_ids``)
        fetcher: Object with ``fetch(url) -> Document`` (defaults to a WebFetcher)
        persist: Write the merged table; False only collects (test mode)
        sleep: Sleep function used for pacing

    Returns:
        Dict with run statistics and the resulting ``table``
    """
    ids = list(ids if ids is not None else config.municipality_ids)

    _step(f"STEP 1: Scraping {len(ids)} municipal profiles")
    with _fetcher_for(config, fetcher) as active:
        records = collect(
            ids,
            partial(build_profile, fetcher=active, config=config),
            pacing_delay=config.politeness_delay,
            progress_every=config.progress_every,
            label="municipalities",
            sleep=sleep,
        )
        fetch_counts = _fetch_counts(active)

    df = records_to_frame(records, ProfileRecord, PROFILE_COLUMNS)

    _step("STEP 2: Checking certified value totals")
    violations = certified_total_violations(df, config.certified_total_tolerance)
    logger.info(f"{len(violations)} profiles with inconsistent certified totals")

    stats = {
        'success': True,
        'requested': len(ids),
        'collected': len(df),
        'failed': len(ids) - len(df),
        'total_violations': len(violations),
        'table': df,
        **fetch_counts,
    }

    if not persist:
        return stats

    _step("STEP 3: Saving profiles")
    try:
        result = _persist_reference(
            df, config, config.profiles_file,
            key_columns=['muni_code'],
            sort_columns=['municipality'],
            required_columns=['muni_code'],
            columns=PROFILE_COLUMNS,
            int_columns=(),
        )
    except TableIOError as e:
        logger.error(f"Could not update {config.profiles_file}: {e}")
        return {**stats, 'success': False, 'error': str(e)}

    stats.update({'table': result.table, 'rows': len(result.table), 'outcome': result.outcome.value})
    return stats


def run_millage(
    config: RunConfig,
    years: Optional[List[int]] = None,
    fetcher=None,
    persist: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """Collect municipal and school millage for each year and merge all three tables.

    Args:
        config: Run configuration
        years: Tax years (defaults to ``config.millage_years``)
        fetcher: Object with ``fetch(url) -> Document`` (defaults to a WebFetcher)
        persist: Write the merged tables; False only collects (test mode)
        sleep: Sleep function used for pacing

    Returns:
        Dict with run statistics and the ``muni``, ``school`` and ``county`` tables
    """
    years = list(years if years is not None else config.millage_years)
    collect_kwargs = dict(
        pacing_delay=config.politeness_delay,
        progress_every=config.progress_every,
        label="years",
        sleep=sleep,
    )

    with _fetcher_for(config, fetcher) as active:
        _step("STEP 1: Scraping municipal millage rates")
        muni_batches = collect(years, partial(build_muni_millage, fetcher=active, config=config), **collect_kwargs)

        _step("STEP 2: Scraping school district millage rates")
        school_batches = collect(years, partial(build_school_millage, fetcher=active, config=config), **collect_kwargs)
        fetch_counts = _fetch_counts(active)

    _step("STEP 3: Adding codes")
    municipal, county = split_county_rows(_flatten(muni_batches))
    schools = _flatten(school_batches)

    unresolved = sorted({r.municipality for r in municipal if r.muni_code is None})
    if unresolved:
        logger.warning(f"No municipality code for: {unresolved}")
    unresolved = sorted({r.school for r in schools if r.school_code is None})
    if unresolved:
        logger.warning(f"No school code for: {unresolved}")

    muni_df = records_to_frame(municipal, MuniMillageRecord, MUNI_MILLAGE_COLUMNS)
    school_df = records_to_frame(schools, SchoolMillageRecord, SCHOOL_MILLAGE_COLUMNS)
    county_df = records_to_frame(county, CountyMillageRecord, COUNTY_MILLAGE_COLUMNS)

    stats = {
        'success': True,
        'years': years,
        'years_failed': len(years) - len(muni_batches),
        'school_years_failed': len(years) - len(school_batches),
        'muni': muni_df,
        'school': school_df,
        'county': county_df,
        **fetch_counts,
    }

    if not persist:
        return stats

    _step("STEP 4: Saving files")
    try:
        muni = _persist_reference(
            muni_df, config, config.muni_millage_file,
            key_columns=['muni_code', 'tax_year'],
            sort_columns=['municipality', 'tax_year'],
            required_columns=['muni_code'],
            columns=MUNI_MILLAGE_COLUMNS,
            normalize_existing=_clean_existing_muni_names,
        )
        school = _persist_reference(
            school_df, config, config.school_millage_file,
            key_columns=['school_code', 'tax_year'],
            sort_columns=['school', 'tax_year'],
            required_columns=['school_code'],
            columns=SCHOOL_MILLAGE_COLUMNS,
        )
        county_result = _persist_reference(
            county_df, config, config.county_millage_file,
            key_columns=['county', 'tax_year'],
            sort_columns=['tax_year'],
            columns=COUNTY_MILLAGE_COLUMNS,
        )
    except TableIOError as e:
        logger.error(f"Could not update millage tables: {e}")
        return {**stats, 'success': False, 'error': str(e)}

    for name, result in (('Municipal', muni), ('School', school), ('County', county_result)):
        table_years = sorted(result.table['tax_year'].dropna().unique()) if 'tax_year' in result.table else []
        logger.info(f"  - {name}: {len(result.table)} records, years {', '.join(str(y) for y in table_years)}")

    stats.update({'muni': muni.table, 'school': school.table, 'county': county_result.table})
    return stats


def run_real_estate(
    config: RunConfig,
    ids: Optional[List[int]] = None,
    fetcher=None,
    persist: bool = True,
    now: Optional[datetime] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """Collect current certified values and fold them into the time series.

    Args:
        config: Run configuration (``time_series_policy`` selects same-period handling)
        ids: Profile identifiers (defaults to ``config.municipality_ids``)
        fetcher: Object with ``fetch(url) -> Document`` (defaults to a WebFetcher)
        persist: Write the merged series; False only collects (test mode)
        now: Run timestamp (defaults to the current time)
        sleep: Sleep function used for pacing

    Returns:
        Dict with run statistics, the merge ``outcome`` and the resulting ``table``
    """
    ids = list(ids if ids is not None else config.municipality_ids)
    now = now or datetime.now()
    scraped_at = now.isoformat(sep=' ', timespec='seconds')
    week = snapshot_week(now)

    logger.info("=== Real Estate Values Time Series Update ===")
    logger.info(f"Starting scrape at: {scraped_at}")

    with _fetcher_for(config, fetcher) as active:
        _step("STEP 1: Extracting 'Value As Of' date")
        value_as_of_date = fetch_value_as_of_date(ids[0], active, config) if ids else None
        if value_as_of_date is None:
            logger.warning("Could not extract 'Value As Of' date. Each page's own date will be used.")
        else:
            logger.info(f"'Value As Of' date found: {value_as_of_date}")

        _step(f"STEP 2: Scraping real estate values for {len(ids)} municipalities")
        records = collect(
            ids,
            partial(
                build_real_estate_snapshot,
                fetcher=active,
                config=config,
                value_as_of_date=value_as_of_date,
                scraped_at=scraped_at,
            ),
            pacing_delay=config.politeness_delay,
            progress_every=config.progress_every,
            label="municipalities",
            sleep=sleep,
        )
        fetch_counts = _fetch_counts(active)

    df = records_to_frame(records, RealEstateSnapshot)
    df['scrape_week'] = week
    logger.info(f"Scrape week (Friday): {week}")

    stats = {
        'success': True,
        'requested': len(ids),
        'collected': len(df),
        'failed': len(ids) - len(df),
        'value_as_of_date': value_as_of_date,
        'scrape_week': week,
        'table': df,
        **fetch_counts,
    }

    if not persist:
        return stats

    _step(f"STEP 3: Merging with history ({config.time_series_policy})")
    path = config.get_output_path(config.real_estate_file)
    try:
        existing = load_table(path)
        if existing is None:
            logger.info("No historical file found. Creating new file...")
        result = merge_time_series(df, existing, policy=config.time_series_policy)
        if result.changed:
            save_table(result.table, path)
    except TableIOError as e:
        logger.error(f"Could not update {config.real_estate_file}: {e}")
        return {**stats, 'success': False, 'error': str(e)}

    table = result.table
    weeks = table['scrape_week'].nunique() if 'scrape_week' in table.columns else 0
    logger.info(f"Total records in file: {len(table)}")
    logger.info(f"Unique weeks in file: {weeks}")

    stats.update({
        'table': table,
        'rows': len(table),
        'outcome': result.outcome.value,
        'removed': result.removed_rows,
    })
    return stats


__all__ = [
    'run_profiles',
    'run_millage',
    'run_real_estate',
]
