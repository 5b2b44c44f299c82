"""Shared BDD fixtures and step definitions for shipping quotes."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from shipping.method.method import ShippingMethod
from shipping.rate.rate import ShippingRate
from shipping.shared.money import Money
from shipping.zone.zone import ShippingZone


@pytest.fixture()
def catalog():
    """Zones and methods defined by the scenario, keyed by name/code."""
    return {"zones": {}, "methods": {}}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.re(r'a zone "(?P<name>[^"]+)" covering "(?P<locations>[^"]+)" with priority (?P<priority>\d+)'),
    converters={"priority": int},
)
def zone_covering(catalog, name, locations, priority):
    zone = ShippingZone.define(name=name, locations=locations.split(","), priority=priority)
    current_domain.repository_for(ShippingZone).add(zone)
    catalog["zones"][name] = zone


@given(
    parsers.re(
        r'a zone "(?P<name>[^"]+)" covering "(?P<locations>[^"]+)" '
        r'except "(?P<excluded>[^"]+)" with priority (?P<priority>\d+)'
    ),
    converters={"priority": int},
)
def zone_covering_except(catalog, name, locations, excluded, priority):
    zone = ShippingZone.define(
        name=name,
        locations=locations.split(","),
        excluded_locations=excluded.split(","),
        priority=priority,
    )
    current_domain.repository_for(ShippingZone).add(zone)
    catalog["zones"][name] = zone


@given(parsers.cfparse('a shipping method "{code}"'))
def shipping_method(catalog, code):
    method = ShippingMethod(name=code.title(), code=code)
    current_domain.repository_for(ShippingMethod).add(method)
    catalog["methods"][code] = method


@given(parsers.cfparse('a flat rate of {amount:f} for "{code}" in zone "{zone}"'))
def flat_rate(catalog, amount, code, zone):
    rate = ShippingRate.define(
        zone_id=str(catalog["zones"][zone].id),
        method_id=str(catalog["methods"][code].id),
        rate_type="flat",
        base_rate=amount,
    )
    current_domain.repository_for(ShippingRate).add(rate)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the quote uses zone "{zone}"'))
def quote_uses_zone(result, zone):
    assert result.zone_name == zone


@then(parsers.cfparse('the "{code}" charge is {amount:f} {currency}'))
def charge_is(result, code, amount, currency):
    quote = next(q for q in result.quotes if q.method_code == code)
    assert quote.charge == Money(amount=amount, currency=currency)


@then(parsers.cfparse('the outcome is "{outcome}"'))
def outcome_is(result, outcome):
    assert result.outcome.value == outcome
