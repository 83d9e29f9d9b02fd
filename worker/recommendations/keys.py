"""Stable recommendation keys.

The same underlying issue must map to the same key across scans, even when
the recommendation text changes slightly (counts in titles, casing,
punctuation, Turkish vs ASCII spelling).
"""

import re
import unicodedata

# Turkish dotted/dotless capitals lower-case differently from the default
_TURKISH_UPPER = str.maketrans({"İ": "i", "I": "ı"})
_ASCII_FOLD = str.maketrans({"ş": "s", "ç": "c", "ğ": "g", "ü": "u", "ö": "o", "ı": "i"})

_DIGITS = re.compile(r"[0-9]+")
_NON_LETTER = re.compile(r"[^a-z\s]")
_NON_LETTER_STRICT = re.compile(r"[^a-z]")
_WHITESPACE = re.compile(r"\s+")

AUTHORITY_KEY_PREFIX = "authority-"


def fold_text(text: str) -> str:
    """Lower-case with Turkish rules and strip every diacritic."""
    folded = text.translate(_TURKISH_UPPER).lower().translate(_ASCII_FOLD)
    decomposed = unicodedata.normalize("NFKD", folded)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_key_part(text: str) -> str:
    """Normalize free text (a title or an action) into a dash-joined slug."""
    text = _DIGITS.sub("", fold_text(text))
    text = _NON_LETTER.sub("", text).strip()
    return _WHITESPACE.sub("-", text)


def normalize_recommendation_key(category: str, title: str) -> str:
    """
    Build the stable key for a recommendation.

    Example:
        >>> normalize_recommendation_key("Güvenlik", "3 Güvenlik header'ı eksik")
        'guvenlik::guvenlik-headeri-eksik'
    """
    category_part = _NON_LETTER_STRICT.sub("", fold_text(category))
    return f"{category_part}::{normalize_key_part(title)}"


def authority_task_key(report_key: str, action: str) -> str:
    """
    Key for a task derived from an authority report action.

    Example:
        >>> authority_task_key("seo-authority", "Title etiketlerini 60 karaktere indir")
        'authority-seo::title-etiketlerini-karaktere-indir'
    """
    report = report_key.removesuffix("-authority")
    return f"{AUTHORITY_KEY_PREFIX}{report}::{normalize_key_part(action)}"


def is_authority_task_key(key: str) -> bool:
    return key.startswith(AUTHORITY_KEY_PREFIX)
