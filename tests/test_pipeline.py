"""End-to-end tests of the three runs against canned pages."""

from datetime import datetime

import pandas as pd
import pytest
from allegheny_extractor.csv_io import load_table
from allegheny_extractor.pipeline import run_millage, run_profiles, run_real_estate

from conftest import FakeFetcher, make_profile_html


def no_sleep(seconds):
    pass


class TestRunProfiles:
    """Test the profile run."""

    def test_writes_table(self, sample_config, profile_fetcher):
        result = run_profiles(sample_config, fetcher=profile_fetcher, sleep=no_sleep)

        assert result['success']
        assert result['collected'] == 2
        assert result['failed'] == 1

        saved = load_table(sample_config.get_output_path(sample_config.profiles_file))
        assert list(saved['muni_code']) == ['901', '801']
        assert pd.isna(saved.loc[1, 'fire_chief'])

    def test_rerun_is_idempotent(self, sample_config, profile_fetcher):
        run_profiles(sample_config, fetcher=profile_fetcher, sleep=no_sleep)
        path = sample_config.get_output_path(sample_config.profiles_file)
        first = path.read_text()

        run_profiles(sample_config, fetcher=profile_fetcher, sleep=no_sleep)

        assert path.read_text() == first

    def test_test_mode_writes_nothing(self, sample_config, profile_fetcher):
        result = run_profiles(sample_config, ids=[1], fetcher=profile_fetcher, persist=False, sleep=no_sleep)
        assert len(result['table']) == 1
        assert not sample_config.get_output_path(sample_config.profiles_file).exists()

    def test_reports_fetch_counts(self, sample_config, profile_fetcher):
        result = run_profiles(sample_config, fetcher=profile_fetcher, persist=False, sleep=no_sleep)
        assert result['pages_fetched'] == 2
        assert result['pages_failed'] == 1

    def test_reports_total_violations(self, sample_config):
        fetcher = FakeFetcher({sample_config.profile_url(1): make_profile_html(total='$999,999')})
        result = run_profiles(sample_config, ids=[1], fetcher=fetcher, persist=False, sleep=no_sleep)
        assert result['total_violations'] == 1


class TestRunMillage:
    """Test the millage run."""

    def test_writes_three_tables(self, sample_config, millage_fetcher):
        result = run_millage(sample_config, fetcher=millage_fetcher, sleep=no_sleep)
        assert result['success']

        muni = load_table(sample_config.get_output_path(sample_config.muni_millage_file))
        school = load_table(sample_config.get_output_path(sample_config.school_millage_file))
        county = load_table(sample_config.get_output_path(sample_config.county_millage_file))

        # Nowhere Borough has no code and is dropped
        assert set(muni['municipality']) == {'Aleppo Township', 'Aspinwall Borough'}
        assert len(muni) == 4
        assert set(school['school_code']) == {'1', '2'}
        assert list(county['tax_year']) == [2024, 2025]
        assert list(county['millage']) == [4.73, 4.73]

    def test_rerun_no_duplicates(self, sample_config, millage_fetcher):
        run_millage(sample_config, fetcher=millage_fetcher, sleep=no_sleep)
        run_millage(sample_config, fetcher=millage_fetcher, sleep=no_sleep)

        muni = load_table(sample_config.get_output_path(sample_config.muni_millage_file))
        assert not muni.duplicated(['muni_code', 'tax_year']).any()

    def test_existing_footnotes_cleaned(self, sample_config, millage_fetcher):
        path = sample_config.get_output_path(sample_config.muni_millage_file)
        path.write_text('municipality,muni_code,tax_year,millage,land_millage\nAleppo Township 1,901,2018,3.0,\n')

        run_millage(sample_config, fetcher=millage_fetcher, sleep=no_sleep)

        muni = load_table(path)
        assert 'Aleppo Township 1' not in set(muni['municipality'])
        assert len(muni[muni['muni_code'] == '901']) == 3

    def test_failed_year_skipped(self, sample_config, millage_fetcher):
        result = run_millage(sample_config, years=[2024, 2030], fetcher=millage_fetcher, persist=False, sleep=no_sleep)
        assert result['years_failed'] == 1
        assert set(result['muni']['tax_year']) == {2024}
        assert result['pages_fetched'] == 2
        assert result['pages_failed'] == 2


class TestRunRealEstate:
    """Test the weekly real-estate run."""

    def test_same_week_rerun_replaces(self, sample_config, profile_fetcher):
        run_real_estate(sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 8, 9, 0), sleep=no_sleep)
        result = run_real_estate(sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 10, 9, 0), sleep=no_sleep)

        assert result['outcome'] == 'replaced'
        table = load_table(sample_config.get_output_path(sample_config.real_estate_file))
        assert len(table) == 2
        assert set(table['scrape_week']) == {'2026-01-09'}
        assert not table.duplicated(['municipality', 'scrape_week']).any()

    def test_next_week_appends_with_changes(self, sample_config, profile_fetcher):
        run_real_estate(sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 8), sleep=no_sleep)

        later = FakeFetcher({
            sample_config.profile_url(1): make_profile_html(as_of='1/15/2026', current_taxable='$106,050'),
            sample_config.profile_url(2): make_profile_html(as_of='1/15/2026'),
        })
        result = run_real_estate(sample_config, fetcher=later, now=datetime(2026, 1, 15), sleep=no_sleep)

        assert result['outcome'] == 'appended'
        table = load_table(sample_config.get_output_path(sample_config.real_estate_file))
        aleppo = table[table['muni_code'] == '901'].sort_values('scrape_week')
        assert list(aleppo['scrape_week']) == ['2026-01-09', '2026-01-16']
        assert aleppo['taxable_value_wow_change'].iloc[-1] == 5050.0
        assert aleppo['taxable_value_wow_pct'].iloc[-1] == 5.0

    def test_skip_policy_leaves_file(self, sample_config, profile_fetcher):
        run_real_estate(sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 8), sleep=no_sleep)
        path = sample_config.get_output_path(sample_config.real_estate_file)
        before = path.read_text()

        sample_config.time_series_policy = 'skip-as-of'
        result = run_real_estate(sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 15), sleep=no_sleep)

        assert result['outcome'] == 'skipped'
        assert path.read_text() == before

    def test_as_of_date_read_once(self, sample_config, profile_fetcher):
        result = run_real_estate(
            sample_config, ids=[1, 2], fetcher=profile_fetcher,
            now=datetime(2026, 1, 8), persist=False, sleep=no_sleep,
        )
        assert result['value_as_of_date'] == '2026-01-08'
        assert set(result['table']['value_as_of_date']) == {'2026-01-08'}
        assert result['scrape_week'] == '2026-01-09'

    def test_write_failure_reported(self, sample_config, profile_fetcher, monkeypatch):
        def fail(self, *args, **kwargs):
            raise OSError("read-only file system")

        monkeypatch.setattr(pd.DataFrame, 'to_csv', fail)
        result = run_real_estate(sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 8), sleep=no_sleep)

        assert not result['success']
        assert 'read-only' in result['error']

    def test_reports_fetch_counts(self, sample_config, profile_fetcher):
        result = run_real_estate(
            sample_config, fetcher=profile_fetcher, now=datetime(2026, 1, 8), persist=False, sleep=no_sleep,
        )
        # The as-of lookup reads page 1 once more
        assert result['pages_fetched'] == 3
        assert result['pages_failed'] == 1

    def test_skip_policy_undated_reruns(self, sample_config):
        fetcher = FakeFetcher({
            sample_config.profile_url(1): make_profile_html(as_of='soon'),
            sample_config.profile_url(2): make_profile_html(as_of='soon'),
        })
        sample_config.time_series_policy = 'skip-as-of'

        for _ in range(3):
            result = run_real_estate(sample_config, ids=[1, 2], fetcher=fetcher, now=datetime(2026, 1, 8), sleep=no_sleep)

        assert result['value_as_of_date'] is None
        table = load_table(sample_config.get_output_path(sample_config.real_estate_file))
        assert len(table) == 2
        assert not table.duplicated(['municipality', 'scrape_week']).any()
