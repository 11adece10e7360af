"""Rate-card quote engine.

Prices a drone job from a seller's rate card. All amounts are integer cents;
every intermediate amount is rounded half-up before the next step uses it.
"""
import math
from typing import Optional

from app.schemas.quote import RateCardTerms, QuoteJob, QuoteBreakdown
from app.core.enums import Season
from app.schemas.fields import MAX_AMOUNT_CENTS

SEASON_BY_MONTH = {
    3: Season.SPRING, 4: Season.SPRING, 5: Season.SPRING,
    6: Season.SUMMER, 7: Season.SUMMER, 8: Season.SUMMER,
    9: Season.AUTUMN, 10: Season.AUTUMN, 11: Season.AUTUMN,
    12: Season.WINTER, 1: Season.WINTER, 2: Season.WINTER,
}
OBSTACLES_KEY = "obstacles"
MAX_TOTAL_CENTS = MAX_AMOUNT_CENTS


class PricingError(ValueError):
    pass


def round_cents(amount: float) -> int:
    """Half-up rounding: 12.5 -> 13, not Python's banker's 12."""
    if not math.isfinite(amount):
        raise PricingError(f"Amount out of range: {amount}")
    return int(math.floor(amount + 0.5))


def season_for_month(month: int) -> Season:
    try:
        return SEASON_BY_MONTH[month]
    except KeyError:
        raise PricingError(f"Invalid month: {month}")


def _factor(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def seasonal_multiplier(terms: RateCardTerms, season: Season) -> float:
    factor = _factor(terms.seasonal_multipliers.get(season.value))
    # missing and zero factors both mean "no seasonal adjustment"
    return factor if factor else 1.0


def terrain_multiplier(terms: RateCardTerms, job: QuoteJob) -> float:
    multiplier = 1.0

    if job.is_hilly_terrain and terms.hilly_terrain_multiplier:
        multiplier *= terms.hilly_terrain_multiplier

    obstacles = _factor(terms.custom_multipliers.get(OBSTACLES_KEY))
    if job.has_obstacles and obstacles is not None:
        multiplier *= obstacles

    for key, value in terms.custom_multipliers.items():
        if key == OBSTACLES_KEY:
            continue
        factor = _factor(value)
        if factor is not None:
            multiplier *= factor

    if job.risk_key:
        risk = _factor(terms.risk_multipliers.get(job.risk_key))
        if risk is not None:
            multiplier *= risk

    return multiplier


def surcharges_total(terms: RateCardTerms, job: QuoteJob) -> int:
    total = 0
    if job.is_hilly_terrain and terms.hilly_terrain_surcharge_cents:
        total += terms.hilly_terrain_surcharge_cents
    for value in terms.custom_surcharges.values():
        amount = _factor(value)
        if amount is not None:
            total += round_cents(amount)
    return total


def calculate_quote(terms: RateCardTerms, job: QuoteJob) -> QuoteBreakdown:
    base_cents = round_cents(job.area_ha * terms.base_rate_per_ha_cents)

    season = season_for_month(job.month)
    seasonal_mult = seasonal_multiplier(terms, season)
    seasonal_adjusted_cents = round_cents(base_cents * seasonal_mult)

    terrain_mult = terrain_multiplier(terms, job)
    multiplied_cents = round_cents(seasonal_adjusted_cents * terrain_mult)

    travel_fixed_cents = terms.travel_fixed_cents
    travel_variable_cents = round_cents(job.distance_km * terms.travel_rate_per_km_cents)
    travel_cents = travel_fixed_cents + travel_variable_cents

    surcharges_cents = surcharges_total(terms, job)

    subtotal_cents = multiplied_cents + travel_cents + surcharges_cents
    total_cents = max(subtotal_cents, terms.min_charge_cents)

    if total_cents > MAX_TOTAL_CENTS:
        raise PricingError(f"Quote total out of range: {total_cents} cents")

    return QuoteBreakdown(
        base_cents=base_cents,
        season=season,
        seasonal_multiplier=seasonal_mult,
        seasonal_adjusted_cents=seasonal_adjusted_cents,
        terrain_multiplier=terrain_mult,
        multiplied_cents=multiplied_cents,
        travel_fixed_cents=travel_fixed_cents,
        travel_variable_cents=travel_variable_cents,
        travel_cents=travel_cents,
        surcharges_cents=surcharges_cents,
        subtotal_cents=subtotal_cents,
        min_charge_cents=terms.min_charge_cents,
        min_charge_applied=subtotal_cents < terms.min_charge_cents,
        total_cents=total_cents,
    )
