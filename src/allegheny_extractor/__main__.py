"""Command-line interface for the Allegheny County civic data extractor."""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from .config import TIME_SERIES_POLICIES, RunConfig
from .csv_io import TableIOError
from .pipeline import run_millage, run_profiles, run_real_estate
from .utils import setup_logging

# Fields whose presence is reported in test mode
PROFILE_CHECK_FIELDS = ['fire_chief', 'police_chief', 'median_property_value', 'certified_taxable_value']
SNAPSHOT_CHECK_FIELDS = ['value_as_of_date', 'taxable_value', 'median_residential_value']


def parse_args(argv=None):
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='allegheny_extractor',
        description='Collect Allegheny County municipal profiles, millage rates and real-estate values.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Weekly real-estate snapshot
  python -m allegheny_extractor real-estate

  # Check the first three profile pages without writing anything
  python -m allegheny_extractor profiles --test

  # Millage for selected years into a custom directory
  python -m allegheny_extractor millage --years 2024 2025 --output-dir ./data

  # Keep the first batch of a published date instead of replacing the week
  python -m allegheny_extractor real-estate --policy skip-as-of
"""
    )

    parser.add_argument(
        'command',
        choices=['profiles', 'millage', 'real-estate'],
        help='Dataset to collect'
    )

    parser.add_argument(
        '--config',
        type=Path,
        help='YAML configuration file (default: ALLEGHENY_* environment variables)'
    )

    parser.add_argument(
        '--test',
        action='store_true',
        help='Scrape only the test identifiers and print the results without saving'
    )

    parser.add_argument(
        '--ids',
        type=int,
        nargs='+',
        help='Profile identifiers to visit (default: all 130)'
    )

    parser.add_argument(
        '--years',
        type=int,
        nargs='+',
        help='Tax years for the millage run (default: 2018 to current year)'
    )

    parser.add_argument(
        '--output-dir',
        type=Path,
        help='Directory holding the CSV tables (default: ./data)'
    )

    parser.add_argument(
        '--policy',
        choices=TIME_SERIES_POLICIES,
        help='Same-period handling for the real-estate series (default: replace-week)'
    )

    parser.add_argument(
        '--delay',
        type=float,
        help='Seconds to wait before each request (default: 1.0)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    return parser.parse_args(argv)


def build_config(args) -> RunConfig:
    """Combine the configuration source with command-line overrides."""
    overrides = {}
    if args.output_dir is not None:
        overrides['output_dir'] = args.output_dir
    if args.ids:
        overrides['municipality_ids'] = args.ids
    if args.years:
        overrides['millage_years'] = args.years
    if args.policy:
        overrides['time_series_policy'] = args.policy
    if args.delay is not None:
        overrides['politeness_delay'] = args.delay

    if args.config:
        return RunConfig.from_yaml(args.config, **overrides)
    return RunConfig.from_env(**overrides)


def print_field_checks(df: pd.DataFrame, check_fields) -> None:
    """Print, per municipality, which of the watched fields were found."""
    for _, row in df.iterrows():
        print(f"\n{row.get('municipality')}:")
        for name in check_fields:
            value = row.get(name)
            status = "missing" if value is None or pd.isna(value) else value
            print(f"  {name}: {status}")


def run_command(args, config: RunConfig) -> dict:
    persist = not args.test
    ids = config.test_ids if args.test and not args.ids else None

    if args.command == 'profiles':
        return run_profiles(config, ids=ids, persist=persist)
    if args.command == 'millage':
        years = config.millage_years[-1:] if args.test and not args.years else None
        return run_millage(config, years=years, persist=persist)
    return run_real_estate(config, ids=ids, persist=persist)


def print_summary(args, config: RunConfig, result: dict) -> None:
    if args.test:
        print("\n=== TEST MODE RESULTS ===")
        if args.command == 'millage':
            for name in ('muni', 'school', 'county'):
                print(f"\n{name} ({len(result[name])} rows):")
                print(result[name].to_string(index=False))
        else:
            table = result['table']
            print(table.to_string(index=False))
            checks = PROFILE_CHECK_FIELDS if args.command == 'profiles' else SNAPSHOT_CHECK_FIELDS
            print_field_checks(table, checks)
        print("\nTest complete. Results were not saved.")
        return

    print("\n✅ Run completed successfully!")
    if args.command == 'millage':
        print(f"   - Municipal rows: {len(result['muni'])}")
        print(f"   - School rows: {len(result['school'])}")
        print(f"   - County rows: {len(result['county'])}")
        if result.get('years_failed'):
            print(f"   - Years failed: {result['years_failed']}")
    else:
        print(f"   - Collected: {result.get('collected', 0)} of {result.get('requested', 0)}")
        print(f"   - Rows in file: {result.get('rows', 0)}")
        if result.get('outcome'):
            print(f"   - History: {result['outcome']}")
    if result.get('pages_failed'):
        print(f"   - Pages failed: {result['pages_failed']} of {result['pages_fetched'] + result['pages_failed']}")
    print(f"\nResults saved to: {config.output_dir}")


def main(argv=None):
    """Main CLI entrypoint."""
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = build_config(args)
        result = run_command(args, config)

        if result.get('error'):
            print(f"\n❌ Run failed: {result['error']}", file=sys.stderr)
            sys.exit(1)

        print_summary(args, config, result)
        sys.exit(0)

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user", file=sys.stderr)
        sys.exit(130)
    except (TableIOError, ValueError) as e:
        print(f"\n❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
