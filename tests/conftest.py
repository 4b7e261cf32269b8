"""Shared test fixtures and utilities."""

import pytest
import tempfile
from pathlib import Path

from allegheny_extractor.config import RunConfig
from allegheny_extractor.document import Document
from allegheny_extractor.fetch import FetchError


def make_profile_html(
    fire_chief=True,
    taxable='$100,000',
    exempt='$20,000',
    purta='$5,000',
    total='$125,000',
    as_of='1/8/2026',
    current_taxable='$101,000',
    median='$137,800',
):
    """Build a profile page laid out like the county's MuniProfile.asp."""
    if fire_chief:
        fire_row = '<tr><td><b>Fire Chief:</b></td><td>Chief Alice Burns Fire Department Info</td></tr>'
    else:
        fire_row = '<tr><td><b>Fire Service:</b></td><td>Volunteer</td></tr>'

    return f"""
<html><body>
<section><center><table><tbody><tr><td><div>
  <p>Profile</p>
  <p>Local government information</p>
  <p>Rolling hills along the Ohio River.</p>
  <table><tbody>
    <tr><td><b>County Council District:</b></td><td>District 1</td></tr>
    <tr><td><b>Council Representative:</b></td><td>Jack  Betkowski |</td></tr>
    <tr><td><b>Senatorial District:</b></td><td>37</td></tr>
    <tr><td><b>Legislative District:</b></td><td>44</td></tr>
    <tr><td><b>Congressional District:</b></td><td>17</td></tr>
    <tr><td><b>Council  of Government:</b></td><td>Quaker Valley COG</td></tr>
    <tr><td><b>Police Chief:</b></td><td>Chief Bob Reed Police Department Info</td></tr>
    {fire_row}
    <tr><td><b>EMS Agency:</b></td><td>Valley Ambulance</td></tr>
    <tr><td><b>Sanitary Authority:</b></td><td>ALCOSAN</td></tr>
    <tr><td>School District: </td><td>Quaker Valley</td></tr>
    <tr><td><b>Square Miles:</b></td><td>1.8</td></tr>
    <tr><td><b>Location:</b></td><td>North West of Pittsburgh</td></tr>
  </tbody></table>
  <div class="migratebox"><ul>
    <li>Jane Smith, Manager</li>
    <li>100 Main Street</li>
    <li>Phone: 412-555-0100</li>
  </ul></div>
  <div id="no-more-tables">
    <table><tbody>
      <tr><td>Certified Values</td><td>{taxable}</td><td>{exempt}</td><td>{purta}</td><td>{total}</td></tr>
      <tr><td>Value As Of {as_of}</td><td>{current_taxable}</td><td>$21,000</td><td>$5,000</td><td>$127,000</td></tr>
    </tbody></table>
    <table><tbody>
      <tr><td>Millage</td><td>2023</td><td>2024</td><td>2025</td></tr>
      <tr><td>Municipality</td><td>4.73</td><td>4.73</td><td>5.00</td></tr>
      <tr><td>School</td><td>18.50</td><td>18.75</td><td>19.10</td></tr>
    </tbody></table>
    <span>Taxable Residential Median Value as of {as_of}: {median}</span>
  </div>
</div></td></tr></tbody></table></center></section>
</body></html>
"""


MUNI_MILLAGE_HTML = """
<html><body><table>
  <tr><td colspan="5">Municipal Millage Rates</td></tr>
  <tr><td>Municipality</td><td>Col</td><td>Col</td><td>Millage</td><td>Land</td></tr>
  <tr><td>Allegheny County</td><td></td><td></td><td>4.73</td><td></td></tr>
  <tr><td>Aleppo Township 1</td><td>x</td><td>x</td><td>3.25</td><td>0</td></tr>
  <tr><td>Aspinwall Borough</td><td>x</td><td>x</td><td>5.60</td></tr>
  <tr><td>Nowhere Borough</td><td>x</td><td>x</td><td>2.00</td></tr>
  <tr><td>Footnote</td><td>only two cells</td></tr>
  <tr><td>Bad Rate Township</td><td>x</td><td>x</td><td>n/a</td></tr>
</table></body></html>
"""

SCHOOL_MILLAGE_HTML = """
<html><body><table>
  <tr><td colspan="4">School District Millage Rates</td></tr>
  <tr><td>School District</td><td>Col</td><td>Millage</td><td>Land</td></tr>
  <tr><td>º Allegheny  Valley</td><td>x</td><td>20.50</td><td>1.00</td></tr>
  <tr><td>Allegheny Valley</td><td>x</td><td>20.50</td><td>1.00</td></tr>
  <tr><td>Avonworth</td><td>x</td><td>19.00</td></tr>
  <tr><td>Unknown Area</td><td>x</td><td>10.00</td></tr>
</table></body></html>
"""


class FakeFetcher:
    """Serves canned pages by URL; unknown URLs fail like a network error."""

    def __init__(self, pages):
        self.pages = dict(pages)
        self.requested = []
        self.fetched = 0
        self.failed = 0

    def fetch(self, url):
        self.requested.append(url)
        if url not in self.pages:
            self.failed += 1
            raise FetchError(url, "404 Client Error: Not Found")
        self.fetched += 1
        return Document(self.pages[url], url=url)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir):
    """Create a sample configuration for tests."""
    return RunConfig(
        output_dir=temp_dir / 'data',
        municipality_ids=[1, 2, 3],
        millage_years=[2024, 2025],
        politeness_delay=0,
    )


@pytest.fixture
def profile_document():
    """Profile page with every field present."""
    return Document(make_profile_html(), url='https://example.test/MuniProfile.asp?muni=1')


@pytest.fixture
def profile_fetcher(sample_config):
    """Pages for ids 1 and 2 (id 2 without a fire chief); id 3 fails to fetch."""
    return FakeFetcher({
        sample_config.profile_url(1): make_profile_html(),
        sample_config.profile_url(2): make_profile_html(fire_chief=False),
    })


@pytest.fixture
def millage_fetcher(sample_config):
    pages = {}
    for year in sample_config.millage_years:
        pages[sample_config.muni_millage_url(year)] = MUNI_MILLAGE_HTML
        pages[sample_config.school_millage_url(year)] = SCHOOL_MILLAGE_HTML
    return FakeFetcher(pages)
