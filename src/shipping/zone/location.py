"""Destination and location patterns used to match addresses to zones.

A zone stores its locations as plain strings. Each string parses into one of
the tagged patterns below:

    "US"        CountryMatch        country equality
    "US:CA"     CountryStateMatch   country and state equality
    "941*"      PostalPrefixMatch   postal code starts with "941"
    "*"         AnyLocation         matches every destination

Comparisons are case-insensitive; postal codes ignore spaces.
"""

import json
import re
from dataclasses import dataclass

POSTAL_WILDCARD = "*"
CATCH_ALL = "*"

_COUNTRY_CODE = re.compile(r"^[A-Z]{2,3}$")


def _norm(value: str | None) -> str:
    return (value or "").strip().upper()


def _norm_postal(value: str | None) -> str:
    return "".join(_norm(value).split())


@dataclass(frozen=True)
class Destination:
    """Where a shipment is going."""

    country: str
    state: str | None = None
    postal_code: str | None = None


@dataclass(frozen=True)
class AnyLocation:
    def matches(self, destination: Destination) -> bool:
        return True

    def __str__(self) -> str:
        return CATCH_ALL


@dataclass(frozen=True)
class CountryMatch:
    country: str

    def matches(self, destination: Destination) -> bool:
        return _norm(destination.country) == self.country

    def __str__(self) -> str:
        return self.country


@dataclass(frozen=True)
class CountryStateMatch:
    country: str
    state: str

    def matches(self, destination: Destination) -> bool:
        return _norm(destination.country) == self.country and _norm(destination.state) == self.state

    def __str__(self) -> str:
        return f"{self.country}:{self.state}"


@dataclass(frozen=True)
class PostalPrefixMatch:
    prefix: str

    def matches(self, destination: Destination) -> bool:
        postal = _norm_postal(destination.postal_code)
        return bool(postal) and postal.startswith(self.prefix)

    def __str__(self) -> str:
        return f"{self.prefix}{POSTAL_WILDCARD}"


LocationPattern = AnyLocation | CountryMatch | CountryStateMatch | PostalPrefixMatch


def parse_location_pattern(raw: str) -> LocationPattern:
    """Parse one location string. Raises ValueError when it is malformed."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Invalid location pattern: {raw!r}")

    text = raw.strip()
    if text == CATCH_ALL:
        return AnyLocation()

    if ":" in text:
        country, _, state = text.partition(":")
        country, state = _norm(country), _norm(state)
        if not _COUNTRY_CODE.match(country) or not state:
            raise ValueError(f"Invalid country:state pattern: {raw!r}")
        return CountryStateMatch(country, state)

    if text.endswith(POSTAL_WILDCARD):
        prefix = _norm_postal(text[:-1])
        if not prefix or POSTAL_WILDCARD in prefix:
            raise ValueError(f"Invalid postal prefix pattern: {raw!r}")
        return PostalPrefixMatch(prefix)

    country = _norm(text)
    if not _COUNTRY_CODE.match(country):
        raise ValueError(f"Invalid country code: {raw!r}")
    return CountryMatch(country)


def parse_location_patterns(raw) -> tuple[LocationPattern, ...]:
    """Parse a JSON-encoded (or already decoded) list of location strings."""
    if raw is None or raw == "":
        return ()
    values = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(values, list):
        raise ValueError("Locations must be a list of patterns")
    return tuple(parse_location_pattern(value) for value in values)
