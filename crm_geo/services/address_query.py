import re
from typing import List

from crm_geo.services.coords_policy import (
    normalize_address_text, normalize_address_spacing, strip_trailing_address_suffix
)

COUNTRY_SUFFIXES = ("ישראל", "Israel")


def normalize_for_geocoding(raw_address: str) -> str:
    """Collapse ';'/',' runs into a single ', ' and normalize whitespace"""
    text = re.sub(r"\s*[;,][\s;,]*", ", ", str(raw_address or ""))
    return normalize_address_text(text).strip(", ").strip()


def build_address_queries(raw_address: str) -> List[str]:
    """
    Candidate provider queries for an address, most specific first.

    Sub-unit suffixes ("דירה 5", "apt 3") are stripped, then country-suffixed
    variants are appended. The list is de-duplicated and keeps order.
    """
    normalized = normalize_for_geocoding(raw_address)
    if not normalized:
        return []

    stripped = strip_trailing_address_suffix(normalized)
    base = stripped or normalized

    variants = [base] + [f"{base}, {suffix}" for suffix in COUNTRY_SUFFIXES]
    queries = _dedupe(normalize_address_spacing(item) for item in variants)
    if not queries:
        queries = _dedupe([base, f"{base}, {COUNTRY_SUFFIXES[0]}"])
    return queries


def _dedupe(items) -> List[str]:
    seen = set()
    result = []
    for item in items:
        item = (item or "").strip()
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result
