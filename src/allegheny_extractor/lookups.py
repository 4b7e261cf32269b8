"""Static entity lookup tables for Allegheny County municipalities and school districts.

Profile pages are addressed by a dense 1-based identifier; millage pages use a
different naming style ("Aspinwall Borough" rather than "Borough of Aspinwall"),
so each naming style has its own name-to-code table. Municipal codes and school
codes are separate namespaces.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

COUNTY_LABEL = "Allegheny County"

# Position i holds the name of the municipality whose profile id is i + 1.
MUNICIPALITY_NAMES: Tuple[str, ...] = (
    "Aleppo Township",
    "Borough of Aspinwall",
    "Borough of Avalon",
    "Borough of Baldwin",
    "Baldwin Township",
    "Borough of Bell Acres",
    "Borough of Bellevue",
    "Borough of Ben Avon",
    "Borough of Ben Avon Hts.",
    "Municipality of Bethel Park",
    "Borough of Blawnox",
    "Borough of Brackenridge",
    "Borough of Braddock",
    "Borough of Braddock Hills",
    "Borough of Bradford Woods",
    "Borough of Brentwood",
    "Borough of Bridgeville",
    "Borough of Carnegie",
    "Borough of Castle Shannon",
    "Borough of Chalfant",
    "Borough of Cheswick",
    "Borough of Churchill",
    "City of Clairton",
    "Collier Township",
    "Borough of Coraopolis",
    "Borough of Crafton",
    "Crescent Township",
    "Borough of Dormont",
    "Borough of Dravosburg",
    "City of Duquesne",
    "East Deer Township",
    "Borough of East McKeesport",
    "Borough of East Pittsburgh",
    "Borough of Edgewood",
    "Borough of Edgeworth",
    "Borough of Elizabeth",
    "Elizabeth Township",
    "Borough of Emsworth",
    "Borough of Etna",
    "Fawn Township",
    "Findlay Township",
    "Borough of Forest Hills",
    "Forward Township",
    "Borough of Fox Chapel",
    "Borough of Franklin Park",
    "Frazer Township",
    "Borough of Glassport",
    "Borough of Glenfield",
    "Borough of Green Tree",
    "Hampton Township",
    "Harmar Township",
    "Harrison Township",
    "Borough of Haysville",
    "Borough of Heidelberg",
    "Borough of Homestead",
    "Indiana Township",
    "Borough of Ingram",
    "Borough of Jefferson Hills",
    "Kennedy Township",
    "Kilbuck Township",
    "Leet Township",
    "Borough of Leetsdale",
    "Borough of Liberty",
    "Borough of Lincoln",
    "Marshall Township",
    "Town of McCandless",
    "Borough of McDonald",
    "City of McKeesport",
    "Borough of McKees Rocks",
    "Borough of Millvale",
    "Municipality of Monroeville",
    "Moon Township",
    "Municipality of Mt. Lebanon",
    "Borough of Mt. Oliver",
    "Borough of Munhall",
    "Neville Township",
    "North Braddock Borough",
    "North Fayette Township",
    "North Versailles Township",
    "Borough of Oakdale",
    "Borough of Oakmont",
    "O'Hara Township",
    "Ohio Township",
    "Borough of Glen Osborne",
    "Municipality of Penn Hills",
    "Pennsbury Village",
    "Pine Township",
    "Borough of Pitcairn",
    "City of Pittsburgh",
    "Borough of Pleasant Hills",
    "Borough of Plum",
    "Borough of Port Vue",
    "Borough of Rankin",
    "Reserve Township",
    "Richland Township",
    "Robinson Township",
    "Ross Township",
    "Borough of Rosslyn Farms",
    "Scott Township",
    "Borough of Sewickley",
    "Borough of Sewickley Hts.",
    "Borough of Sewickley Hills",
    "Shaler Township",
    "Borough of Sharpsburg",
    "South Fayette Township",
    "South Park Township",
    "South Versailles Township",
    "Borough of Springdale",
    "Springdale Township",
    "Stowe Township",
    "Borough of Swissvale",
    "Borough of Tarentum",
    "Borough of Thornburg",
    "Borough of Trafford",
    "Borough of Turtle Creek",
    "Upper St. Clair Township",
    "Borough of Verona",
    "Borough of Versailles",
    "Borough of Wall",
    "West Deer Township",
    "Borough of West Elizabeth",
    "Borough of West Homestead",
    "Borough of West Mifflin",
    "Borough of West View",
    "Borough of Whitaker",
    "Borough of White Oak",
    "Borough of Whitehall",
    "Wilkins Township",
    "Borough of Wilkinsburg",
    "Borough of Wilmerding",
)

PROFILE_MUNI_CODES: Mapping[str, str] = MappingProxyType({
    "Aleppo Township": "901",
    "Borough of Aspinwall": "801",
    "Borough of Avalon": "802",
    "Borough of Baldwin": "877",
    "Baldwin Township": "902",
    "Borough of Bell Acres": "883",
    "Borough of Bellevue": "803",
    "Borough of Ben Avon": "804",
    "Borough of Ben Avon Hts.": "805",
    "Municipality of Bethel Park": "876",
    "Borough of Blawnox": "806",
    "Borough of Brackenridge": "807",
    "Borough of Braddock": "808",
    "Borough of Braddock Hills": "872",
    "Borough of Bradford Woods": "809",
    "Borough of Brentwood": "810",
    "Borough of Bridgeville": "811",
    "Borough of Carnegie": "812",
    "Borough of Castle Shannon": "813",
    "Borough of Chalfant": "814",
    "Borough of Cheswick": "815",
    "Borough of Churchill": "816",
    "City of Clairton": "200",
    "Collier Township": "905",
    "Borough of Coraopolis": "817",
    "Borough of Crafton": "818",
    "Crescent Township": "906",
    "Borough of Dormont": "819",
    "Borough of Dravosburg": "820",
    "City of Duquesne": "300",
    "East Deer Township": "907",
    "Borough of East McKeesport": "821",
    "Borough of East Pittsburgh": "822",
    "Borough of Edgewood": "823",
    "Borough of Edgeworth": "824",
    "Borough of Elizabeth": "825",
    "Elizabeth Township": "908",
    "Borough of Emsworth": "826",
    "Borough of Etna": "827",
    "Fawn Township": "909",
    "Findlay Township": "910",
    "Borough of Forest Hills": "828",
    "Forward Township": "911",
    "Borough of Fox Chapel": "868",
    "Borough of Franklin Park": "884",
    "Frazer Township": "913",
    "Borough of Glassport": "829",
    "Borough of Glenfield": "830",
    "Borough of Green Tree": "831",
    "Hampton Township": "914",
    "Harmar Township": "915",
    "Harrison Township": "916",
    "Borough of Haysville": "832",
    "Borough of Heidelberg": "833",
    "Borough of Homestead": "834",
    "Indiana Township": "917",
    "Borough of Ingram": "835",
    "Borough of Jefferson Hills": "878",
    "Kennedy Township": "919",
    "Kilbuck Township": "920",
    "Leet Township": "921",
    "Borough of Leetsdale": "836",
    "Borough of Liberty": "837",
    "Borough of Lincoln": "881",
    "Marshall Township": "923",
    "Town of McCandless": "927",
    "Borough of McDonald": "841",
    "City of McKeesport": "400",
    "Borough of McKees Rocks": "842",
    "Borough of Millvale": "838",
    "Municipality of Monroeville": "879",
    "Moon Township": "925",
    "Municipality of Mt. Lebanon": "926",
    "Borough of Mt. Oliver": "839",
    "Borough of Munhall": "840",
    "Neville Township": "928",
    "North Braddock Borough": "843",
    "North Fayette Township": "929",
    "North Versailles Township": "930",
    "Borough of Oakdale": "844",
    "Borough of Oakmont": "845",
    "O'Hara Township": "931",
    "Ohio Township": "932",
    "Borough of Glen Osborne": "846",
    "Municipality of Penn Hills": "934",
    "Pennsbury Village": "871",
    "Pine Township": "935",
    "Borough of Pitcairn": "847",
    "City of Pittsburgh": "100",
    "Borough of Pleasant Hills": "873",
    "Borough of Plum": "880",
    "Borough of Port Vue": "848",
    "Borough of Rankin": "849",
    "Reserve Township": "937",
    "Richland Township": "938",
    "Robinson Township": "939",
    "Ross Township": "940",
    "Borough of Rosslyn Farms": "850",
    "Scott Township": "941",
    "Borough of Sewickley": "851",
    "Borough of Sewickley Hts.": "869",
    "Borough of Sewickley Hills": "882",
    "Shaler Township": "944",
    "Borough of Sharpsburg": "852",
    "South Fayette Township": "946",
    "South Park Township": "945",
    "South Versailles Township": "947",
    "Borough of Springdale": "853",
    "Springdale Township": "948",
    "Stowe Township": "949",
    "Borough of Swissvale": "854",
    "Borough of Tarentum": "855",
    "Borough of Thornburg": "856",
    "Borough of Trafford": "857",
    "Borough of Turtle Creek": "858",
    "Upper St. Clair Township": "950",
    "Borough of Verona": "859",
    "Borough of Versailles": "860",
    "Borough of Wall": "861",
    "West Deer Township": "952",
    "Borough of West Elizabeth": "862",
    "Borough of West Homestead": "863",
    "Borough of West Mifflin": "870",
    "Borough of West View": "864",
    "Borough of Whitaker": "865",
    "Borough of White Oak": "875",
    "Borough of Whitehall": "874",
    "Wilkins Township": "953",
    "Borough of Wilkinsburg": "866",
    "Borough of Wilmerding": "867",
})

MILLAGE_MUNI_CODES: Mapping[str, str] = MappingProxyType({
    "Aleppo Township": "901",
    "Aspinwall Borough": "801",
    "Avalon Borough": "802",
    "Baldwin Borough": "877",
    "Baldwin Township": "902",
    "Bell Acres Borough": "883",
    "Bellevue Borough": "803",
    "Ben Avon Borough": "804",
    "Ben Avon Heights Borough": "805",
    "Bethel Park": "876",
    "Blawnox Borough": "806",
    "Brackenridge Borough": "807",
    "Braddock Borough": "808",
    "Braddock Hills Borough": "872",
    "Bradford Woods Borough": "809",
    "Brentwood Borough": "810",
    "Bridgeville Borough": "811",
    "Carnegie Borough": "812",
    "Castle Shannon Borough": "813",
    "Chalfant Borough": "814",
    "Cheswick Borough": "815",
    "Churchill Borough": "816",
    "City of Clairton": "200",
    "Collier Township": "905",
    "Coraopolis Borough": "817",
    "Crafton Borough": "818",
    "Crescent Township": "906",
    "Dormont Borough": "819",
    "Dravosburg Borough": "820",
    "City of Duquesne": "300",
    "East Deer Township": "907",
    "East McKeesport Borough": "821",
    "East Pittsburgh Borough": "822",
    "Edgewood Borough": "823",
    "Edgeworth Borough": "824",
    "Elizabeth Borough": "825",
    "Elizabeth Township": "908",
    "Emsworth Borough": "826",
    "Etna Borough": "827",
    "Fawn Township": "909",
    "Findlay Township": "910",
    "Forest Hills Borough": "828",
    "Forward Township": "911",
    "Fox Chapel Borough": "868",
    "Franklin Park Borough": "884",
    "Frazer Township": "913",
    "Glassport Borough": "829",
    "Glenfield Borough": "830",
    "Green Tree Borough": "831",
    "Hampton Township": "914",
    "Harmar Township": "915",
    "Harrison Township": "916",
    "Haysville Borough": "832",
    "Heidelberg Borough": "833",
    "Homestead Borough": "834",
    "Indiana Township": "917",
    "Ingram Borough": "835",
    "Jefferson Hills Borough": "878",
    "Kennedy Township": "919",
    "Kilbuck Township": "920",
    "Leet Township": "921",
    "Leetsdale Borough": "836",
    "Liberty Borough": "837",
    "Lincoln Borough": "881",
    "Marshall Township": "923",
    "McCandless Township": "927",
    "McDonald Borough": "841",
    "City of McKeesport": "400",
    "McKees Rocks Borough": "842",
    "Millvale Borough": "838",
    "Monroeville Municipality": "879",
    "Moon Township": "925",
    "Mount Lebanon": "926",
    "Mount Oliver Borough": "839",
    "Munhall Borough": "840",
    "Neville Township": "928",
    "North Braddock Borough": "843",
    "North Fayette Township": "929",
    "North Versailles Township": "930",
    "Oakdale Borough": "844",
    "Oakmont Borough": "845",
    "O'Hara Township": "931",
    "Ohio Township": "932",
    "Glen Osborne Borough": "846",
    "Penn Hills Township": "934",
    "Pennsbury Village": "871",
    "Pine Township": "935",
    "Pitcairn Borough": "847",
    "City of Pittsburgh": "100",
    "Pleasant Hills Borough": "873",
    "Plum Borough": "880",
    "Port Vue Borough": "848",
    "Rankin Borough": "849",
    "Reserve Township": "937",
    "Richland Township": "938",
    "Robinson Township": "939",
    "Ross Township": "940",
    "Rosslyn Farms Borough": "850",
    "Scott Township": "941",
    "Sewickley Borough": "851",
    "Sewickley Heights Borough": "869",
    "Sewickley Hills Borough": "882",
    "Shaler Township": "944",
    "Sharpsburg Borough": "852",
    "South Fayette Township": "946",
    "South Park Township": "945",
    "South Versailles Township": "947",
    "Springdale Borough": "853",
    "Springdale Township": "948",
    "Stowe Township": "949",
    "Swissvale Borough": "854",
    "Tarentum Borough": "855",
    "Thornburg Borough": "856",
    "Trafford Borough": "857",
    "Turtle Creek Borough": "858",
    "Upper St. Clair Township": "950",
    "Verona Borough": "859",
    "Versailles Borough": "860",
    "Wall Borough": "861",
    "West Deer Township": "952",
    "West Elizabeth Borough": "862",
    "West Homestead Borough": "863",
    "West Mifflin Borough": "870",
    "West View Borough": "864",
    "Whitaker Borough": "865",
    "White Oak Borough": "875",
    "Whitehall Borough": "874",
    "Wilkins Township": "953",
    "Wilkinsburg Borough": "866",
    "Wilmerding Borough": "867",
})

SCHOOL_CODES: Mapping[str, str] = MappingProxyType({
    "ALLEGHENY VALLEY": "1",
    "AVONWORTH": "2",
    "BALDWIN-WHITEHALL": "4",
    "BETHEL PARK": "5",
    "BRENTWOOD": "6",
    "CARLYNTON": "7",
    "CHARTIERS VALLEY": "8",
    "CLAIRTON": "10",
    "CORNELL": "11",
    "DEER LAKES": "12",
    "DUQUESNE AREA": "13",
    "EAST ALLEGHENY": "14",
    "ELIZABETH-FORWARD": "16",
    "FORT CHERRY": "48",
    "FOX CHAPEL AREA": "17",
    "GATEWAY": "18",
    "HAMPTON": "20",
    "HIGHLANDS": "21",
    "KEYSTONE OAKS": "22",
    "MCKEESPORT AREA": "23",
    "MONTOUR": "24",
    "MOON AREA": "25",
    "MT. LEBANON": "26",
    "NORTH ALLEGHENY": "27",
    "NORTH HILLS": "28",
    "NORTHGATE": "29",
    "PENN HILLS": "30",
    "PENN-TRAFFORD": "49",
    "PINE-RICHLAND": "3",
    "PITTSBURGH": "47",
    "PLUM": "31",
    "QUAKER VALLEY": "32",
    "RIVERVIEW": "33",
    "SHALER AREA": "34",
    "SOUTH ALLEGHENY": "35",
    "SOUTH FAYETTE": "36",
    "SOUTH PARK": "37",
    "STEEL VALLEY": "38",
    "STO-ROX": "39",
    "UPPER ST. CLAIR": "42",
    "WEST ALLEGHENY": "43",
    "WEST JEFFERSON": "44",
    "WEST MIFFLIN AREA": "45",
    "WILKINSBURG": "46",
    "WOODLAND HILLS": "9",
})


@dataclass(frozen=True)
class EntityDescriptor:
    """Identity of one municipality as addressed by the profile pages."""

    entity_id: int
    name: Optional[str]
    muni_code: Optional[str]


def municipality_name(entity_id: int) -> Optional[str]:
    """Return the canonical name for a 1-based profile id, or None if out of range."""
    if not isinstance(entity_id, int) or entity_id < 1 or entity_id > len(MUNICIPALITY_NAMES):
        return None
    return MUNICIPALITY_NAMES[entity_id - 1]


def muni_code_for(name: Optional[str]) -> Optional[str]:
    """Resolve a municipality code from either naming style."""
    if not name:
        return None
    return PROFILE_MUNI_CODES.get(name) or MILLAGE_MUNI_CODES.get(name)


def school_code_for(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    return SCHOOL_CODES.get(name.upper())


def describe(entity_id: int) -> EntityDescriptor:
    """Build the descriptor for a profile id; unknown ids yield empty name and code."""
    name = municipality_name(entity_id)
    return EntityDescriptor(entity_id=entity_id, name=name, muni_code=muni_code_for(name))
