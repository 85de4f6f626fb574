"""
Coordinate and address-text policy.

Pure functions, no I/O. ``is_usable_job_coords`` is the single authority
consulted before accepting a geocode/route result or showing a map pin.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

ISRAEL_BOUNDS = {
    "min_lat": 29.0,
    "max_lat": 34.9,
    "min_lng": 34.0,
    "max_lng": 35.9,
}

# Trailing sub-unit descriptors providers can't resolve ("..., דירה 5", "apt 3B")
TRAILING_SUFFIX_RE = re.compile(
    r"\s*[,.\-]?\s*\b(apartment|apt|floor|entrance|suite|unit|דירה|דיר|קומה|כניסה)\s*[^\W_][\w/\-]*$",
    re.IGNORECASE,
)


def parse_coord(value: Any) -> Optional[float]:
    """Parse a number or numeric string; None for anything not finite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return numeric if math.isfinite(numeric) else None


def is_zero_zero(lat: Any, lng: Any) -> bool:
    parsed_lat = parse_coord(lat)
    parsed_lng = parse_coord(lng)
    if parsed_lat is None or parsed_lng is None:
        return False
    return parsed_lat == 0 and parsed_lng == 0


def is_in_israel_bounds(lat: Any, lng: Any) -> bool:
    parsed_lat = parse_coord(lat)
    parsed_lng = parse_coord(lng)
    if parsed_lat is None or parsed_lng is None:
        return False
    return (
        ISRAEL_BOUNDS["min_lat"] <= parsed_lat <= ISRAEL_BOUNDS["max_lat"]
        and ISRAEL_BOUNDS["min_lng"] <= parsed_lng <= ISRAEL_BOUNDS["max_lng"]
    )


def is_usable_job_coords(lat: Any, lng: Any) -> bool:
    parsed_lat = parse_coord(lat)
    parsed_lng = parse_coord(lng)
    if parsed_lat is None or parsed_lng is None:
        return False
    if is_zero_zero(parsed_lat, parsed_lng):
        return False
    return is_in_israel_bounds(parsed_lat, parsed_lng)


def has_any_coords(lat: Any, lng: Any) -> bool:
    return parse_coord(lat) is not None or parse_coord(lng) is not None


def same_coords(a_lat: Any, a_lng: Any, b_lat: Any, b_lng: Any) -> bool:
    values = [parse_coord(v) for v in (a_lat, a_lng, b_lat, b_lng)]
    if any(v is None for v in values):
        return False
    return values[0] == values[2] and values[1] == values[3]


def normalize_address_text(value: Any) -> str:
    """Trim and collapse internal whitespace. Never raises."""
    if value is None:
        return ""
    return " ".join(str(value).split())


def normalize_address_spacing(value: Any) -> str:
    """Whitespace plus separator cleanup: ';'/'|' become ', ', comma spacing is fixed."""
    text = str(value or "")
    text = re.sub(r"[\r\n\t]+", " ", text)
    text = re.sub(r"[;|]+", ", ", text)
    text = re.sub(r"\s*,\s*", ", ", text)
    text = re.sub(r",(\s*,)+", ",", text)
    text = re.sub(r"\s+", " ", text).strip()
    return re.sub(r"^,\s*|\s*,$", "", text)


def strip_trailing_address_suffix(value: Any) -> str:
    return TRAILING_SUFFIX_RE.sub("", str(value or "")).strip()


def is_strict_israeli_address_format(value: Any) -> bool:
    """Require "street number, city": at least two segments, a digit in the first."""
    normalized = normalize_address_text(value)
    if not normalized:
        return False
    parts = [part.strip() for part in normalized.split(",") if part.strip()]
    if len(parts) < 2:
        return False
    city_part = ",".join(parts[1:]).strip()
    if not city_part:
        return False
    return bool(re.search(r"\d", parts[0]))


def _split_alpha_numeric_tokens(value: str) -> str:
    text = re.sub(r"([^\W\d_])(\d)", r"\1 \2", value)
    text = re.sub(r"(\d)([^\W\d_])", r"\1 \2", text)
    return re.sub(r"\s+", " ", text).strip()


def _infer_comma_before_city(value: str) -> str:
    if not value or "," in value:
        return value
    tokens = [token for token in value.split(" ") if token.strip()]
    if len(tokens) < 3:
        return value
    number_index = next((i for i, token in enumerate(tokens) if re.search(r"\d", token)), -1)
    if number_index < 0 or number_index >= len(tokens) - 1:
        return value
    street_part = " ".join(tokens[:number_index + 1])
    city_part = " ".join(tokens[number_index + 1:])
    return f"{street_part}, {city_part}"


@dataclass
class AddressAutofix:
    value: str
    changed: bool
    fixes: List[str] = field(default_factory=list)


def autofix_address_text(value: Any) -> AddressAutofix:
    """
    Form-level address cleanup, e.g. "הרצל10 אשדוד" -> "הרצל 10, אשדוד".

    Each applied step is recorded by name in ``fixes``.
    """
    original = str(value or "")
    if not original.strip():
        return AddressAutofix(value="", changed=False, fixes=[])

    steps = [
        ("spacing", normalize_address_spacing),
        ("split_alpha_numeric", _split_alpha_numeric_tokens),
        ("remove_trailing_suffix", strip_trailing_address_suffix),
        ("add_city_comma", _infer_comma_before_city),
        ("final_spacing", normalize_address_spacing),
    ]
    fixes = []
    current = original
    for name, step in steps:
        updated = step(current)
        if updated != current:
            fixes.append(name)
            current = updated

    return AddressAutofix(value=current, changed=current != original, fixes=fixes)
