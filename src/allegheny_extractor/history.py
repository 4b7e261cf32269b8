"""Reconciliation of freshly collected tables with persisted history.

Two policies are implemented:

Reference tables (profiles, municipal/school/county millage)
    existing + new are concatenated, rows whose code could not be resolved
    are dropped, duplicates on the natural key keep the newest row, and the
    result is sorted and rewritten in full.

Time series (real-estate snapshots)
    rows are keyed by (municipality, period). With ``replace-week`` the period
    is the snapshot week and a re-scrape replaces that week's rows; with
    ``skip-as-of`` the period is the published as-of date and a batch whose
    date is already stored is discarded. Week-over-week and year-to-date
    metrics are recomputed over the merged series.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .csv_io import is_missing_cell
from .records import CODE_COLUMNS, METRIC_COLUMNS, REAL_ESTATE_COLUMNS
from .utils import snapshot_week

logger = logging.getLogger(__name__)

POLICY_PERIOD_COLUMN = {
    'replace-week': 'scrape_week',
    'skip-as-of': 'value_as_of_date',
}


class MergeOutcome(str, Enum):
    CREATED = 'created'
    MERGED = 'merged'
    APPENDED = 'appended'
    REPLACED = 'replaced'
    SKIPPED = 'skipped'


@dataclass
class MergeResult:
    """Merged table plus what happened to it."""

    table: pd.DataFrame
    outcome: MergeOutcome
    existing_rows: int = 0
    new_rows: int = 0
    removed_rows: int = 0
    dropped_unresolved: int = 0

    @property
    def changed(self) -> bool:
        return self.outcome != MergeOutcome.SKIPPED


def _coerce_types(df: pd.DataFrame, int_columns: Sequence[str] = ()) -> pd.DataFrame:
    """Give key columns one type on both sides of a merge."""
    df = df.copy()
    for col in CODE_COLUMNS:
        if col in df.columns:
            df[col] = df[col].map(lambda v: None if is_missing_cell(v) else str(v).strip())
    for col in int_columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors='coerce').astype('Int64')
    return df


def _order_columns(df: pd.DataFrame, columns: Optional[Sequence[str]]) -> pd.DataFrame:
    # Known columns first; columns only found in older files are kept at the end
    if not columns:
        return df
    for col in columns:
        if col not in df.columns:
            df[col] = pd.NA
    extras = [c for c in df.columns if c not in columns]
    if extras:
        logger.warning(f"Keeping columns not in the current schema: {extras}")
    return df[list(columns) + extras]


def _concat(frames: List[pd.DataFrame]) -> pd.DataFrame:
    frames = [f for f in frames if f is not None and not f.empty]
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True, sort=False)


def merge_reference_table(
    new: pd.DataFrame,
    existing: Optional[pd.DataFrame],
    key_columns: Sequence[str],
    sort_columns: Optional[Sequence[str]] = None,
    required_columns: Sequence[str] = (),
    columns: Optional[Sequence[str]] = None,
    int_columns: Sequence[str] = ('tax_year',),
    normalize_existing: Optional[Callable[[pd.DataFrame], pd.DataFrame]] = None,
) -> MergeResult:
    """Merge a fresh batch into a reference table; the fresh batch wins.

    Args:
        new: Freshly collected rows
        existing: Persisted table, or None if there is none yet
        key_columns: Natural key, e.g. ('muni_code', 'tax_year')
        sort_columns: Output ordering (defaults to the key)
        required_columns: Rows missing any of these (unresolved codes) are dropped
        columns: Output column order
        int_columns: Columns compared as integers
        normalize_existing: Cleanup applied to persisted rows before merging

    Returns:
        MergeResult with the full table to write back
    """
    new = _coerce_types(new, int_columns)
    existing_rows = 0

    if existing is None:
        outcome = MergeOutcome.CREATED
        combined = new
    else:
        existing = _coerce_types(existing, int_columns)
        if normalize_existing is not None:
            existing = normalize_existing(existing)
        existing_rows = len(existing)
        outcome = MergeOutcome.MERGED
        # New rows last so keep='last' lets them win
        combined = _concat([existing, new])

    combined = _order_columns(combined, columns)

    dropped = 0
    if required_columns and not combined.empty:
        before = len(combined)
        combined = combined.dropna(subset=list(required_columns))
        dropped = before - len(combined)
        if dropped:
            logger.warning(f"Dropped {dropped} rows with unresolved {', '.join(required_columns)}")

    if not combined.empty:
        combined = combined.drop_duplicates(subset=list(key_columns), keep='last')
        combined = combined.sort_values(list(sort_columns or key_columns), kind='mergesort')
    combined = combined.reset_index(drop=True)

    return MergeResult(
        table=combined,
        outcome=outcome,
        existing_rows=existing_rows,
        new_rows=len(new),
        dropped_unresolved=dropped,
    )


def _week_or_none(value) -> Optional[str]:
    if is_missing_cell(value):
        return None
    try:
        return snapshot_week(str(value))
    except ValueError:
        logger.warning(f"Could not derive a snapshot week from {value!r}")
        return None


def backfill_snapshot_week(df: pd.DataFrame) -> pd.DataFrame:
    """Derive ``scrape_week`` from ``scraped_at`` for rows written before it existed."""
    df = df.copy()
    if 'scrape_week' not in df.columns:
        logger.warning("Adding scrape_week column to historical data...")
        df['scrape_week'] = None

    if 'scraped_at' in df.columns:
        missing = df['scrape_week'].map(is_missing_cell)
        if missing.any():
            df.loc[missing, 'scrape_week'] = df.loc[missing, 'scraped_at'].map(_week_or_none)
    return df


def calculate_changes(
    df: pd.DataFrame,
    entity_column: str = 'municipality',
    period_column: str = 'scrape_week',
    value_column: str = 'taxable_value',
) -> pd.DataFrame:
    """Recompute week-over-week and year-to-date changes over a full series.

    The year-to-date baseline is the first observation of the same calendar
    year (of the period) for the same entity. Percentages are rounded to 4
    places; divisions by a missing or zero baseline yield missing values.

    Args:
        df: Time series table
        entity_column: Column identifying the series
        period_column: ISO date column ordering the series
        value_column: Measured value

    Returns:
        Sorted copy of ``df`` with the four metric columns replaced
    """
    df = df.sort_values([entity_column, period_column], kind='mergesort').reset_index(drop=True)
    if df.empty:
        for col in METRIC_COLUMNS:
            df[col] = pd.Series(dtype=float)
        return df

    prefix = value_column
    values = pd.to_numeric(df[value_column], errors='coerce').astype(float)
    entity = df[entity_column]

    previous = values.groupby(entity).shift(1)
    df[f'{prefix}_wow_change'] = values - previous
    df[f'{prefix}_wow_pct'] = ((values - previous) / previous * 100).round(4)

    year = pd.to_datetime(df[period_column], errors='coerce').dt.year
    first_of_year = values.groupby([entity, year]).transform('first')
    df[f'{prefix}_ytd_change'] = values - first_of_year
    df[f'{prefix}_ytd_pct'] = ((values - first_of_year) / first_of_year * 100).round(4)

    metrics = [f'{prefix}_wow_change', f'{prefix}_wow_pct', f'{prefix}_ytd_change', f'{prefix}_ytd_pct']
    df[metrics] = df[metrics].replace([np.inf, -np.inf], np.nan)
    return df


def _week_keys(df: pd.DataFrame, entity_column: str) -> pd.MultiIndex:
    return pd.MultiIndex.from_frame(df[[entity_column, 'scrape_week']])


def _reconcile_undated(
    new: pd.DataFrame,
    existing: pd.DataFrame,
    entity_column: str,
) -> Tuple[pd.DataFrame, pd.DataFrame, int]:
    """Match rows without an as-of date on (municipality, scrape_week) instead.

    A new undated row is skipped when that municipality already has a dated
    row for the same week. A stored undated row is replaced by any new row
    for the same municipality and week.

    Returns:
        (new rows to add, existing rows to keep, number of existing rows removed)
    """
    if 'scrape_week' not in new.columns:
        return new, existing, 0

    undated_existing = existing['value_as_of_date'].map(is_missing_cell).astype(bool).to_numpy()
    undated_new = new['value_as_of_date'].map(is_missing_cell).astype(bool).to_numpy()

    if undated_new.any():
        logger.warning(f"{int(undated_new.sum())} rows have no value_as_of_date; matching them on scrape_week")
        dated_keys = _week_keys(existing[~undated_existing], entity_column)
        skip = undated_new & _week_keys(new, entity_column).isin(dated_keys)
        if skip.any():
            logger.info(f"Skipping {int(skip.sum())} undated rows for weeks that already hold dated data")
        new = new[~skip]

    remove = undated_existing & _week_keys(existing, entity_column).isin(_week_keys(new, entity_column))
    return new, existing[~remove], int(remove.sum())


def merge_time_series(
    new: pd.DataFrame,
    existing: Optional[pd.DataFrame],
    policy: str = 'replace-week',
    entity_column: str = 'municipality',
    columns: Optional[Sequence[str]] = REAL_ESTATE_COLUMNS,
) -> MergeResult:
    """Merge a fresh snapshot batch into the persisted time series.

    State transitions:
        no file                      -> CREATED
        file, new period             -> APPENDED
        file, same period (replace)  -> REPLACED (that period's rows swapped)
        file, same period (skip)     -> SKIPPED  (existing table returned unchanged)

    Under ``skip-as-of`` a row whose as-of date could not be read falls back
    to the (municipality, scrape_week) key, so re-running within a week never
    stacks undated copies.

    Args:
        new: Fresh snapshot rows, already carrying ``scrape_week``
        existing: Persisted series, or None if there is none yet
        policy: 'replace-week' or 'skip-as-of'
        entity_column: Column identifying a municipality's series
        columns: Output column order

    Returns:
        MergeResult with the table to write back
    """
    if policy not in POLICY_PERIOD_COLUMN:
        raise ValueError(f"Unknown time series policy: {policy}")
    period_column = POLICY_PERIOD_COLUMN[policy]

    new = _coerce_types(new)
    if period_column not in new.columns:
        new[period_column] = None
    periods = {p for p in new[period_column] if not is_missing_cell(p)}
    if not periods:
        logger.warning(f"New batch has no {period_column}; rows cannot be matched to an existing period")

    # The same municipality twice in one batch keeps its last row
    new = new.drop_duplicates(subset=[entity_column, period_column], keep='last')
    new_rows = len(new)

    existing_rows = 0
    removed = 0

    if existing is None:
        outcome = MergeOutcome.CREATED
        combined = new
    else:
        existing = backfill_snapshot_week(_coerce_types(existing))
        existing_rows = len(existing)

        if period_column not in existing.columns:
            existing[period_column] = None

        same_period = existing[period_column].isin(periods)
        skipped = MergeResult(
            table=existing,
            outcome=MergeOutcome.SKIPPED,
            existing_rows=existing_rows,
            new_rows=new_rows,
        )

        if same_period.any() and policy == 'skip-as-of':
            logger.info(f"Data as of {', '.join(sorted(periods))} already exists; keeping existing table")
            return skipped

        if same_period.any():
            removed = int(same_period.sum())
            logger.info(f"Data for week of {', '.join(sorted(periods))} already exists; replacing {removed} rows")
            existing = existing[~same_period]

        if policy == 'skip-as-of':
            new, existing, removed = _reconcile_undated(new, existing, entity_column)
            if new.empty:
                logger.info("Every row of the batch is already stored; keeping existing table")
                return skipped

        outcome = MergeOutcome.REPLACED if removed else MergeOutcome.APPENDED
        combined = _concat([existing, new])
        logger.info(f"Added {len(new)} new records to {len(existing)} historical records")

    combined = _order_columns(combined, columns)

    order_column = period_column
    if policy == 'skip-as-of' and 'scrape_week' in combined.columns:
        # Undated rows take their place in the series by snapshot week
        undated = combined[period_column].map(is_missing_cell).astype(bool)
        combined['series_period'] = combined[period_column].where(~undated, combined['scrape_week'])
        order_column = 'series_period'

    combined = calculate_changes(combined, entity_column=entity_column, period_column=order_column)
    combined = combined.drop(columns=['series_period'], errors='ignore')

    return MergeResult(
        table=combined,
        outcome=outcome,
        existing_rows=existing_rows,
        new_rows=new_rows,
        removed_rows=removed,
    )
