"""
Title vocabulary tables.

Regex fragments for the noise removed from product titles, and the keyword
tables used to derive physical edition information. Fragments are matched
case-insensitively as whole words.
"""

STUDIO_PATTERNS: tuple[str, ...] = (
    r"warner bros\.?(?: pictures| home (?:video|entertainment))?",
    r"warner home video",
    r"universal (?:pictures|studios)(?: home entertainment)?",
    r"paramount (?:pictures|home entertainment)",
    r"sony pictures(?: home entertainment)?",
    r"columbia (?:pictures|tristar)",
    r"(?:20th|twentieth) century (?:fox|studios)(?: home entertainment)?",
    r"walt disney(?: studios| pictures| home entertainment)?",
    r"buena vista(?: home entertainment)?",
    r"lions ?gate(?: films| home entertainment)?",
    r"metro[- ]goldwyn[- ]mayer",
    r"mgm",
    r"dreamworks(?: pictures| animation)?",
    r"new line cinema",
    r"miramax",
    r"touchstone pictures",
    r"anchor bay(?: entertainment)?",
    r"shout factory",
    r"arrow video",
    r"kino lorber",
    r"home entertainment",
    r"home video",
)

EDITION_PATTERNS: tuple[str, ...] = (
    r"director'?s cut",
    r"extended (?:edition|cut|version)",
    r"special edition",
    r"collector'?s edition",
    r"limited edition",
    r"(?:\d+(?:st|nd|rd|th) )?anniversary edition",
    r"ultimate edition",
    r"theatrical (?:release|cut|version)",
    r"unrated(?: edition| cut)?",
    r"criterion collection",
    r"deluxe edition",
    r"platinum edition",
    r"diamond edition",
    r"signature collection",
    r"widescreen edition",
    r"full ?screen edition",
    r"steelbook",
    r"remastered",
)

FORMAT_PATTERNS: tuple[str, ...] = (
    r"4k ultra hd",
    r"ultra hd",
    r"4k",
    r"uhd",
    r"blu[- ]?ray(?: 3d)?",
    r"hd[- ]dvd",
    r"dvd",
    r"digital (?:hd|copy|code)",
    r"vhs",
    r"widescreen",
    r"full ?screen",
)

DISC_REGION_PATTERNS: tuple[str, ...] = (
    r"region (?:[1-6abc]|free)",
    r"all regions",
    r"\d+[- ]?dis[ck](?: set)?",
    r"dis[ck] \d+",
    r"multi[- ]?dis[ck]",
    r"ntsc",
)

MARKETING_PATTERNS: tuple[str, ...] = (
    r"brand new",
    r"new in box",
    r"free shipping",
    r"fast shipping",
    r"with slip ?cover",
    r"slip ?cover",
    r"includes digital copy",
    r"bonus (?:features|disc)",
    r"box set",
    r"gift set",
    r"\d+(?:st|nd|rd|th) anniversary",
    r"(?:target|best buy|walmart|amazon) exclusive",
    r"exclusive",
)

# Condition words safe to remove anywhere in a title
CONDITION_PATTERNS: tuple[str, ...] = (
    r"factory sealed",
    r"sealed",
    r"pre[- ]?owned",
    r"like new",
    r"(?:very )?good condition",
    r"mint condition",
)

# Condition words that are also common title words; removed only at either end
EDGE_CONDITION_PATTERNS: tuple[str, ...] = (
    r"new",
    r"used",
)

# Seller grades that follow a leading condition word, as in "Used - Good: ..."
CONDITION_GRADE_PATTERNS: tuple[str, ...] = (
    r"like new",
    r"very good",
    r"good",
    r"acceptable",
    r"fair",
    r"excellent",
)

# Removed only as a trailing genre segment or a trailing run of two or more
GENRE_PATTERNS: tuple[str, ...] = (
    r"action",
    r"adventure",
    r"animated",
    r"animation",
    r"comedy",
    r"documentary",
    r"drama",
    r"horror",
    r"romance",
    r"sci[- ]?fi",
    r"science fiction",
    r"thriller",
)

# Words kept lowercase by title-casing unless they start the title or a subtitle
MINOR_WORDS: frozenset[str] = frozenset(
    {"a", "an", "and", "as", "at", "but", "by", "for", "in", "nor", "of", "on", "or", "the", "to", "vs"}
)

# Physical edition keyword tables. Order matters: first match wins.
FORMAT_KEYWORDS: tuple[tuple[str, str], ...] = (
    (r"4k|uhd|ultra hd", "4K UHD"),
    (r"blu[- ]?ray", "Blu-ray"),
    (r"dvd", "DVD"),
    (r"digital", "Digital"),
    (r"vhs", "VHS"),
)
FORMAT_HD_FALLBACK = "Blu-ray"
DEFAULT_FORMAT = "DVD"

EDITION_KEYWORDS: tuple[str, ...] = (
    "Director's Cut",
    "Extended Edition",
    "Special Edition",
    "Collector's Edition",
    "Limited Edition",
    "Anniversary Edition",
    "Theatrical Release",
    "Unrated",
    "Ultimate Edition",
    "Criterion Collection",
)
DEFAULT_EDITION = "Standard"

REGION_KEYWORDS: tuple[str, ...] = (
    "Region 1",
    "Region 2",
    "Region 3",
    "Region A",
    "Region B",
    "Region C",
    "All Regions",
    "Region Free",
)
DEFAULT_REGION = "Region 1"

FEATURE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("commentary", "Director Commentary"),
    ("deleted scenes", "Deleted Scenes"),
    ("behind the scenes", "Behind the Scenes"),
    ("making of", "Making Of"),
    ("bloopers", "Bloopers/Outtakes"),
    ("gag reel", "Bloopers/Outtakes"),
    ("documentary", "Documentary"),
    ("interviews", "Cast/Crew Interviews"),
    ("featurette", "Featurettes"),
    ("trailer", "Trailers"),
    ("music video", "Music Videos"),
)

RELEASE_TYPE_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("anniversary",), "Anniversary"),
    (("special",), "Special Release"),
    (("re-release", "rerelease"), "Re-release"),
)
DEFAULT_RELEASE_TYPE = "Initial Release"
