"""
CaseLocator Backend — Bundled Fallback Dataset
===============================================

What:  Static tables used when the remote location API is unavailable.
How:   Pure data, no behaviour. `FallbackLocationProvider` is the only reader.

Keys:
    Tables are keyed canonically by code (ISO 3166-1 alpha-2 for countries,
    ISO 3166-2 subdivision suffix for states), which matches the codes the
    remote API returns. COUNTRY_CODES is the name ↔ code table for lookups
    that only know a display name.
"""

from typing import Dict, List, Tuple

COUNTRY_CODES: Dict[str, str] = {
    "Afghanistan": "AF", "Albania": "AL", "Algeria": "DZ", "Argentina": "AR",
    "Armenia": "AM", "Australia": "AU", "Austria": "AT", "Azerbaijan": "AZ",
    "Bahrain": "BH", "Bangladesh": "BD", "Belarus": "BY", "Belgium": "BE",
    "Bolivia": "BO", "Brazil": "BR", "Bulgaria": "BG", "Cambodia": "KH",
    "Canada": "CA", "Chile": "CL", "China": "CN", "Colombia": "CO",
    "Croatia": "HR", "Czech Republic": "CZ", "Denmark": "DK", "Ecuador": "EC",
    "Egypt": "EG", "Estonia": "EE", "Ethiopia": "ET", "Finland": "FI",
    "France": "FR", "Georgia": "GE", "Germany": "DE", "Ghana": "GH",
    "Greece": "GR", "Hungary": "HU", "Iceland": "IS", "India": "IN",
    "Indonesia": "ID", "Iran": "IR", "Iraq": "IQ", "Ireland": "IE",
    "Israel": "IL", "Italy": "IT", "Japan": "JP", "Jordan": "JO",
    "Kazakhstan": "KZ", "Kenya": "KE", "Kuwait": "KW", "Latvia": "LV",
    "Lebanon": "LB", "Lithuania": "LT", "Luxembourg": "LU", "Malaysia": "MY",
    "Mexico": "MX", "Morocco": "MA", "Netherlands": "NL", "New Zealand": "NZ",
    "Nigeria": "NG", "Norway": "NO", "Pakistan": "PK", "Peru": "PE",
    "Philippines": "PH", "Poland": "PL", "Portugal": "PT", "Qatar": "QA",
    "Romania": "RO", "Russia": "RU", "Saudi Arabia": "SA", "Singapore": "SG",
    "Slovakia": "SK", "Slovenia": "SI", "South Africa": "ZA", "South Korea": "KR",
    "Spain": "ES", "Sri Lanka": "LK", "Sweden": "SE", "Switzerland": "CH",
    "Thailand": "TH", "Turkey": "TR", "Ukraine": "UA", "United Arab Emirates": "AE",
    "United Kingdom": "GB", "United States": "US", "Uruguay": "UY", "Venezuela": "VE",
    "Vietnam": "VN",
}

# (code, name) pairs in display order
STATES: Dict[str, List[Tuple[str, str]]] = {
    "US": [
        ("AL", "Alabama"), ("AK", "Alaska"), ("AZ", "Arizona"), ("AR", "Arkansas"),
        ("CA", "California"), ("CO", "Colorado"), ("CT", "Connecticut"), ("DE", "Delaware"),
        ("FL", "Florida"), ("GA", "Georgia"), ("HI", "Hawaii"), ("ID", "Idaho"),
        ("IL", "Illinois"), ("IN", "Indiana"), ("IA", "Iowa"), ("KS", "Kansas"),
        ("KY", "Kentucky"), ("LA", "Louisiana"), ("ME", "Maine"), ("MD", "Maryland"),
        ("MA", "Massachusetts"), ("MI", "Michigan"), ("MN", "Minnesota"), ("MS", "Mississippi"),
        ("MO", "Missouri"), ("MT", "Montana"), ("NE", "Nebraska"), ("NV", "Nevada"),
        ("NH", "New Hampshire"), ("NJ", "New Jersey"), ("NM", "New Mexico"), ("NY", "New York"),
        ("NC", "North Carolina"), ("ND", "North Dakota"), ("OH", "Ohio"), ("OK", "Oklahoma"),
        ("OR", "Oregon"), ("PA", "Pennsylvania"), ("RI", "Rhode Island"), ("SC", "South Carolina"),
        ("SD", "South Dakota"), ("TN", "Tennessee"), ("TX", "Texas"), ("UT", "Utah"),
        ("VT", "Vermont"), ("VA", "Virginia"), ("WA", "Washington"), ("WV", "West Virginia"),
        ("WI", "Wisconsin"), ("WY", "Wyoming"),
    ],
    "CA": [
        ("AB", "Alberta"), ("BC", "British Columbia"), ("MB", "Manitoba"),
        ("NB", "New Brunswick"), ("NL", "Newfoundland and Labrador"),
        ("NT", "Northwest Territories"), ("NS", "Nova Scotia"), ("NU", "Nunavut"),
        ("ON", "Ontario"), ("PE", "Prince Edward Island"), ("QC", "Quebec"),
        ("SK", "Saskatchewan"), ("YT", "Yukon"),
    ],
    "AU": [
        ("NSW", "New South Wales"), ("VIC", "Victoria"), ("QLD", "Queensland"),
        ("WA", "Western Australia"), ("SA", "South Australia"), ("TAS", "Tasmania"),
        ("NT", "Northern Territory"), ("ACT", "Australian Capital Territory"),
    ],
    "DE": [
        ("BW", "Baden-Württemberg"), ("BY", "Bavaria"), ("BE", "Berlin"),
        ("BB", "Brandenburg"), ("HB", "Bremen"), ("HH", "Hamburg"), ("HE", "Hesse"),
        ("NI", "Lower Saxony"), ("MV", "Mecklenburg-Vorpommern"),
        ("NW", "North Rhine-Westphalia"), ("RP", "Rhineland-Palatinate"),
        ("SL", "Saarland"), ("SN", "Saxony"), ("ST", "Saxony-Anhalt"),
        ("SH", "Schleswig-Holstein"), ("TH", "Thuringia"),
    ],
    "GB": [
        ("ENG", "England"), ("SCT", "Scotland"), ("WLS", "Wales"), ("NIR", "Northern Ireland"),
    ],
    "IN": [
        ("AP", "Andhra Pradesh"), ("AR", "Arunachal Pradesh"), ("AS", "Assam"),
        ("BR", "Bihar"), ("CT", "Chhattisgarh"), ("GA", "Goa"), ("GJ", "Gujarat"),
        ("HR", "Haryana"), ("HP", "Himachal Pradesh"), ("JH", "Jharkhand"),
        ("KA", "Karnataka"), ("KL", "Kerala"), ("MP", "Madhya Pradesh"),
        ("MH", "Maharashtra"), ("MN", "Manipur"), ("ML", "Meghalaya"), ("MZ", "Mizoram"),
        ("NL", "Nagaland"), ("OR", "Odisha"), ("PB", "Punjab"), ("RJ", "Rajasthan"),
        ("SK", "Sikkim"), ("TN", "Tamil Nadu"), ("TG", "Telangana"), ("TR", "Tripura"),
        ("UP", "Uttar Pradesh"), ("UT", "Uttarakhand"), ("WB", "West Bengal"),
    ],
    "CN": [
        ("AH", "Anhui"), ("BJ", "Beijing"), ("CQ", "Chongqing"), ("FJ", "Fujian"),
        ("GS", "Gansu"), ("GD", "Guangdong"), ("GX", "Guangxi"), ("GZ", "Guizhou"),
        ("HI", "Hainan"), ("HE", "Hebei"), ("HL", "Heilongjiang"), ("HA", "Henan"),
        ("HB", "Hubei"), ("HN", "Hunan"), ("NM", "Inner Mongolia"), ("JS", "Jiangsu"),
        ("JX", "Jiangxi"), ("JL", "Jilin"), ("LN", "Liaoning"), ("NX", "Ningxia"),
        ("QH", "Qinghai"), ("SN", "Shaanxi"), ("SD", "Shandong"), ("SH", "Shanghai"),
        ("SX", "Shanxi"), ("SC", "Sichuan"), ("TJ", "Tianjin"), ("XZ", "Tibet"),
        ("XJ", "Xinjiang"), ("YN", "Yunnan"), ("ZJ", "Zhejiang"),
    ],
    "FR": [
        ("ARA", "Auvergne-Rhône-Alpes"), ("BFC", "Bourgogne-Franche-Comté"),
        ("BRE", "Brittany"), ("CVL", "Centre-Val de Loire"), ("20R", "Corsica"),
        ("GES", "Grand Est"), ("HDF", "Hauts-de-France"), ("IDF", "Île-de-France"),
        ("NOR", "Normandy"), ("NAQ", "Nouvelle-Aquitaine"), ("OCC", "Occitanie"),
        ("PDL", "Pays de la Loire"), ("PAC", "Provence-Alpes-Côte d'Azur"),
    ],
}

# (country code, state code) → city names
CITIES: Dict[Tuple[str, str], List[str]] = {
    ("US", "CA"): [
        "Los Angeles", "San Francisco", "San Diego", "Sacramento", "San Jose", "Fresno",
        "Long Beach", "Oakland", "Bakersfield", "Anaheim", "Santa Ana", "Riverside",
        "Stockton", "Irvine", "Chula Vista", "Fremont", "San Bernardino", "Modesto",
    ],
    ("US", "NY"): [
        "New York City", "Buffalo", "Rochester", "Yonkers", "Syracuse", "Albany",
        "New Rochelle", "Mount Vernon", "Schenectady", "Utica", "White Plains", "Hempstead",
    ],
    ("US", "TX"): [
        "Houston", "San Antonio", "Dallas", "Austin", "Fort Worth", "El Paso",
        "Arlington", "Corpus Christi", "Plano", "Lubbock", "Laredo", "Irving",
    ],
    ("CA", "ON"): [
        "Toronto", "Ottawa", "Hamilton", "London", "Markham", "Vaughan",
        "Kitchener", "Windsor", "Richmond Hill", "Oakville", "Burlington", "Oshawa",
    ],
    ("DE", "BY"): [
        "Munich", "Nuremberg", "Augsburg", "Würzburg", "Regensburg", "Ingolstadt",
        "Fürth", "Erlangen", "Bayreuth", "Bamberg", "Aschaffenburg", "Landshut",
    ],
    ("GB", "ENG"): [
        "London", "Birmingham", "Manchester", "Leeds", "Liverpool", "Sheffield",
        "Bristol", "Newcastle", "Nottingham", "Leicester", "Coventry", "Bradford",
    ],
    ("IN", "MH"): [
        "Mumbai", "Pune", "Nagpur", "Nashik", "Aurangabad", "Solapur",
        "Amravati", "Kolhapur", "Sangli", "Jalgaon", "Akola", "Latur",
    ],
    ("CN", "GD"): [
        "Guangzhou", "Shenzhen", "Dongguan", "Foshan", "Zhongshan", "Zhuhai",
        "Jiangmen", "Huizhou", "Zhaoqing", "Maoming", "Jieyang", "Chaozhou",
    ],
}

# city name → sample street addresses
ADDRESSES: Dict[str, List[str]] = {
    "Los Angeles": [
        "123 Hollywood Boulevard", "456 Sunset Strip", "789 Melrose Avenue",
        "321 Beverly Hills Drive", "654 Santa Monica Boulevard", "987 Rodeo Drive",
        "147 Vine Street", "258 La Brea Avenue",
    ],
    "New York City": [
        "123 Broadway", "456 Fifth Avenue", "789 Park Avenue", "321 Madison Avenue",
        "654 Lexington Avenue", "987 Wall Street", "147 Times Square", "258 Central Park West",
    ],
    "London": [
        "123 Oxford Street", "456 Regent Street", "789 Bond Street", "321 Piccadilly",
        "654 Baker Street", "987 King's Road", "147 Carnaby Street", "258 Portobello Road",
    ],
    "Mumbai": [
        "123 Marine Drive", "456 Linking Road", "789 Carter Road", "321 Hill Road",
        "654 S.V. Road", "987 Western Express Highway", "147 Andheri Link Road",
        "258 Juhu Beach Road",
    ],
    "Toronto": [
        "123 Yonge Street", "456 Queen Street West", "789 King Street", "321 Bloor Street",
        "654 College Street", "987 Dundas Street", "147 Bay Street", "258 Front Street",
    ],
}

# country name → representative (latitude, longitude)
COUNTRY_COORDINATES: Dict[str, Tuple[float, float]] = {
    "United States": (39.8283, -98.5795),
    "Canada": (56.1304, -106.3468),
    "United Kingdom": (55.3781, -3.4360),
    "Germany": (51.1657, 10.4515),
    "France": (46.2276, 2.2137),
    "Australia": (-25.2744, 133.7751),
    "India": (20.5937, 78.9629),
    "China": (35.8617, 104.1954),
    "Japan": (36.2048, 138.2529),
    "Brazil": (-14.2350, -51.9253),
    "Russia": (61.5240, 105.3188),
    "South Africa": (-30.5595, 22.9375),
    "Mexico": (23.6345, -102.5528),
    "Italy": (41.8719, 12.5674),
    "Spain": (40.4637, -3.7492),
    "Netherlands": (52.1326, 5.2913),
    "Sweden": (60.1282, 18.6435),
    "Norway": (60.4720, 8.4689),
    "Switzerland": (46.8182, 8.2275),
    "Belgium": (50.5039, 4.4699),
}
