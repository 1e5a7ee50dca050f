"""Rule-based normalisation: codes, categories, treasure hunts, years, base codes."""

import re
from typing import Iterable, Optional

# --- Slug → code ---
_PARENS_RE = re.compile(r"[()]")
_NON_CODE_RE = re.compile(r"[^a-zA-Z0-9_]")
_MULTI_UNDERSCORE_RE = re.compile(r"_+")


def slug_to_code(slug: str) -> str:
    """Normalise a wiki slug into a DB-safe code.

    Examples:
      'HW_Dream_Garage_(2026)'    → 'HW_Dream_Garage_2026'
      'Mazda_MX-5_Miata_(2025)'   → 'Mazda_MX_5_Miata_2025'
      'Fast_&_Furious:_Twin_Mill' → 'Fast_Furious_Twin_Mill'
    """
    code = _PARENS_RE.sub("", slug)
    code = _NON_CODE_RE.sub("_", code)
    code = _MULTI_UNDERSCORE_RE.sub("_", code)
    return code.strip("_")


# --- Collection categories (order matters: most specific first) ---
DEFAULT_CATEGORY = "mainline"

_CATEGORY_RULES: list[tuple[tuple[str, ...], str]] = [
    ((
        "red_line_club", "rlc", "hwc", "sdcc", "comic.con", "comic_con",
        "convention", "exclusive", "selections", "kroger", "target", "walmart",
        "amazon", "costco", "kmart", "meijer", "dollar_tree", "five_below",
        "store_exclusive",
    ), "exclusive"),
    (("1:43", "1:50", "1:18", "larger_scale", "large_scale"), "larger_scale"),
    ((
        "car_culture", "pop_culture", "boulevard", "collector_edition",
        "collector_series", "premium", "fast_and_furious", "fast_%26_furious",
        "retro_entertainment", "real_riders",
    ), "modern_special"),
    ((
        "monster_truck", "monster_jam", "hot_wheels_id", "hw_id", "skate",
        "starship", "rc_", "_rc_", "radio_control", "remote_control",
        "track_set", "action_set",
    ), "modern_series"),
    ((
        "action_pack", "color_changer", "tattoo_machine", "mystery_car",
        "ultra_hots", "crack_ups",
    ), "early_special"),
    ((
        "flying_colors", "super_chrome", "blackwall", "redline", "red_line",
        "original_sixteen", "original_hot_sixteen",
    ), "early_collection"),
    ((
        "multi_pack", "multipack", "5-pack", "6-pack", "10-pack", "gift_pack",
        "value_pack",
    ), "misc"),
]

COLLECTION_CATEGORIES: list[tuple[str, str, str]] = [
    ("mainline", "Mainline", "Main yearly basic lines."),
    ("early_collection", "Early Collection", "Early classic lines (Flying Colors, Super Chromes)."),
    ("early_special", "Early Special", "Early special series (Action Packs, Color Changers)."),
    ("modern_special", "Modern Special", "Modern premium lines (Car Culture, Pop Culture)."),
    ("modern_series", "Modern Series", "Modern themed lines (Monster Trucks, Skate, RC)."),
    ("exclusive", "Exclusive", "Exclusive programs and channels (RLC, HWC.com, SDCC)."),
    ("larger_scale", "Larger Scale", "Larger scale die-cast models (1:43, 1:50)."),
    ("misc", "Miscellaneous", "Multipacks, mixed sets and uncategorised collections."),
]


def infer_category_code(wiki_slug: str, name: str) -> str:
    """Infer a collection category from slug + display name. First rule wins."""
    haystack = f"{wiki_slug} {name}".lower()
    for keywords, category in _CATEGORY_RULES:
        if any(kw in haystack for kw in keywords):
            return category
    return DEFAULT_CATEGORY


# --- Treasure hunts ---
_SUPER_TREASURE_HUNT_RE = re.compile(r"\d{4}_Treasure_Hunts_Series#Super_Treasure_Hunts")
_TREASURE_HUNT_RE = re.compile(r"\d{4}_Treasure_Hunts_Series#Treasure_Hunts$")


def classify_treasure_hunt(series_slugs: Iterable[str]) -> tuple[bool, bool]:
    """Return (is_treasure_hunt, is_super_treasure_hunt) for a row's series slugs.

    The super pattern is checked first and excludes the plain flag.
    """
    slugs = list(series_slugs)
    if any(_SUPER_TREASURE_HUNT_RE.search(s) for s in slugs):
        return False, True
    return any(_TREASURE_HUNT_RE.search(s) for s in slugs), False


# --- Production years ---
_YEAR_SPLIT_RE = re.compile(r"\s*[-–—]\s*")
_YEAR_RE = re.compile(r"\d{4}")


def _to_year(text: str) -> Optional[int]:
    match = _YEAR_RE.search(text)
    return int(match.group(0)) if match else None


def parse_year_range(text: str) -> tuple[Optional[int], Optional[int]]:
    """Parse '2015 - Present' → (2015, None), '1998 - 2003' → (1998, 2003).

    A single year means a single production year: '2019' → (2019, 2019).
    """
    text = (text or "").strip()
    if not text:
        return None, None
    parts = _YEAR_SPLIT_RE.split(text, maxsplit=1)
    start = _to_year(parts[0])
    if len(parts) == 1:
        return start, start
    end_text = parts[1].strip()
    if end_text.lower() == "present":
        return start, None
    return start, _to_year(end_text)


# --- Base codes inside the notes column: "Base code(s): K23, L14" ---
_BASE_CODES_RE = re.compile(r"codes?(?:\(s\))?\s*:\s*([A-Za-z0-9 ,/&-]+)", re.IGNORECASE)
_CODE_SPLIT_RE = re.compile(r"\s*(?:,|/|&|\band\b)\s*", re.IGNORECASE)


def parse_base_codes(notes: str) -> list[str]:
    if not notes:
        return []
    match = _BASE_CODES_RE.search(notes)
    if not match:
        return []
    codes = []
    for token in _CODE_SPLIT_RE.split(match.group(1)):
        token = token.strip()
        if token and token not in codes:
            codes.append(token)
    return codes


def split_base(text: str) -> tuple[Optional[str], Optional[str]]:
    """'Black / Plastic' → ('Black', 'Plastic')."""
    if not text:
        return None, None
    color, _, kind = text.partition("/")
    return color.strip() or None, kind.strip() or None


def parse_index(text: str) -> Optional[int]:
    """'005' → 5; 'TH' or '' → None."""
    text = (text or "").strip()
    return int(text) if text.isdigit() else None


# --- Blob keys ---
_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)(?:\?|/|$)", re.IGNORECASE)
_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9-]")


def sanitize_code(code: str) -> str:
    return _SANITIZE_RE.sub("_", code)


def generate_photo_key(entity_type: str, code: str, year: str, index: int, url: str) -> str:
    """Build '{entity_type}/{year}/{sanitized code}/{index}.{ext}'. Extension defaults to jpg."""
    match = _EXTENSION_RE.search(url)
    extension = match.group(1).lower() if match else "jpg"
    return f"{entity_type}/{year}/{sanitize_code(code)}/{index}.{extension}"
