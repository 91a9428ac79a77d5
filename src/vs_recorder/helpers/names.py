"""Pokemon name normalization.

Raw labels come from Showdown logs ("Urshifu-*, L50, F"), pokepastes
("Sparky (Pikachu) @ Light Ball") and user input. Everything is reduced
to a lowercase, hyphenated key ("urshifu", "iron-hands") so that one
fighting form always lands in one statistics bucket.

Form handling is data-driven: see data/pokemon_forms.json. "forms" maps
display labels to API keys, "collapse" merges cosmetic or in-battle
variants of a key into the bucket used for analytics.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List

FORMS_TABLE_PATH = Path(__file__).parent.parent / "data" / "pokemon_forms.json"

# Pokepaste lines that never name a Pokemon
_PASTE_SKIP_WORDS = ("nature", "ability", "level", "evs", "ivs")
_GENDER_MARKERS = ("M", "F", "Male", "Female")


def load_forms_table(path: Path = FORMS_TABLE_PATH) -> Dict[str, Any]:
    """Load the form lookup table.

    Raises:
        ValueError: if the file is missing the "forms" or "collapse" sections.
    """
    with open(path, encoding="utf-8") as f:
        table = json.load(f)
    if "forms" not in table or "collapse" not in table:
        raise ValueError(f"Invalid forms table: {path}")
    return table


_FORMS_TABLE = load_forms_table()
POKEMON_FORM_MAPPINGS: Dict[str, str] = _FORMS_TABLE["forms"]
ANALYTICS_COLLAPSE: Dict[str, str] = _FORMS_TABLE["collapse"]
FORMS_TABLE_VERSION: int = _FORMS_TABLE.get("version", 0)


def _slugify(name: str) -> str:
    slug = name.lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9\-]", "", slug)
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")


def clean_pokemon_name(pokemon_name: Any) -> str:
    """
    Clean a raw Pokemon label into an API-style key.

    Strips Showdown details ("Pikachu, L50, M" -> "Pikachu"), nicknames
    and gender markers in parentheses, and the ambiguous form marker
    ("Urshifu-*"). Never raises; returns "" for empty or non-string input.

    Returns:
        Lowercase hyphenated key, e.g. "iron-hands".
    """
    if not pokemon_name or not isinstance(pokemon_name, str):
        return ""

    clean_name = pokemon_name.split(",")[0].strip()

    if "(" in clean_name and ")" in clean_name:
        clean_name = clean_name.split("(")[0].strip()

    clean_name = re.sub(r"\s*\((M|F)\)", "", clean_name).strip()

    if clean_name in POKEMON_FORM_MAPPINGS:
        return POKEMON_FORM_MAPPINGS[clean_name]

    if clean_name.endswith("-*"):
        clean_name = clean_name[:-2]
        if clean_name in POKEMON_FORM_MAPPINGS:
            return POKEMON_FORM_MAPPINGS[clean_name]

    return _slugify(clean_name)


def normalize_pokemon_name(pokemon_name: Any) -> str:
    """Canonical analytics key for a raw label.

    Same as clean_pokemon_name, with cosmetic variants collapsed
    (e.g. every Terapagos form -> "terapagos").
    """
    key = clean_pokemon_name(pokemon_name)
    return ANALYTICS_COLLAPSE.get(key, key)


def convert_display_name(display_name: str) -> str:
    """Convert a pokepaste header line ("Nickname (Species) @ Item") to a key."""
    if not display_name:
        return ""

    name = display_name
    if "@" in name:
        name = name.split("@")[0].strip()

    if "(" in name and ")" in name:
        parts = name.split("(")
        if len(parts) == 2:
            before_paren = parts[0].strip()
            in_paren = parts[1].replace(")", "").strip()

            # "Species (M)" keeps the species, "Nickname (Species)" takes the species
            if "-" in in_paren or in_paren in POKEMON_FORM_MAPPINGS or in_paren in _GENDER_MARKERS:
                name = before_paren
            else:
                name = in_paren

    return clean_pokemon_name(name)


def is_valid_pokemon_name(pokemon_name: Any) -> bool:
    """Loose sanity check: a cleaned key of 3+ characters containing letters."""
    if not pokemon_name or not isinstance(pokemon_name, str):
        return False
    cleaned = clean_pokemon_name(pokemon_name)
    return len(cleaned) >= 3 and re.search(r"[a-z]", cleaned) is not None


def extract_pokemon_from_pokepaste(pokepaste_text: str) -> List[str]:
    """Extract the ordered, de-duplicated Pokemon keys from a pokepaste block."""
    if not pokepaste_text:
        return []

    pokemon_names: List[str] = []
    for line in pokepaste_text.split("\n"):
        trimmed = line.strip()
        lowered = trimmed.lower()

        if (
            not trimmed
            or trimmed.startswith("//")
            or ":" in trimmed
            or trimmed.startswith("-")
            or any(word in lowered for word in _PASTE_SKIP_WORDS)
        ):
            continue

        pokemon_name = convert_display_name(trimmed)
        if is_valid_pokemon_name(pokemon_name) and pokemon_name not in pokemon_names:
            pokemon_names.append(pokemon_name)

    return pokemon_names


def get_display_name(api_name: str) -> str:
    """Human readable name for a key ("iron-hands" -> "Iron Hands")."""
    if not api_name:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in api_name.split("-"))
