"""Severity classification of collision records.

The source data describes injury outcomes in French free text
("Mortel", "Grave", "Léger", "Dommages matériels seulement", ...).
"""
import unicodedata

SEVERITY_CATEGORIES = ("serious", "minor", "none")

SEVERITY_COLORS = {
    "serious": "red",
    "minor": "yellow",
    "none": "green",
}

SEVERITY_LABELS = {
    "serious": "Serious injury or fatal",
    "minor": "Injury without hospitalization",
    "none": "No injury",
}

# First match wins.
_KEYWORDS = (
    (("mortel", "grave"), "serious"),
    (("léger",), "minor"),
)


def _normalize_label(value: str) -> str:
    return unicodedata.normalize("NFC", value).lower()


def severity_category(value) -> str:
    """Map a raw severity label to 'serious', 'minor' or 'none'."""
    # None, NaN and other non-text values carry no severity information.
    if not isinstance(value, str):
        return "none"
    label = _normalize_label(value)
    for keywords, category in _KEYWORDS:
        if any(k in label for k in keywords):
            return category
    return "none"


def severity_color(value) -> str:
    return SEVERITY_COLORS[severity_category(value)]


def classify_severity(value):
    category = severity_category(value)
    return category, SEVERITY_COLORS[category]
