import pytest
from pydantic import ValidationError
from app.services.pricing import (
    calculate_quote,
    round_cents,
    season_for_month,
    PricingError,
)
from app.schemas.quote import RateCardTerms, QuoteJob, QuoteRequest
from app.schemas.fields import parse_italian_number, euros_to_cents
from app.core.enums import Season


def make_terms(**kwargs) -> RateCardTerms:
    data = {
        "base_rate_per_ha_cents": 5000,
        "min_charge_cents": 20000,
        "travel_fixed_cents": 1000,
        "travel_rate_per_km_cents": 50,
        "seasonal_multipliers": {"spring": 1.0, "summer": 1.2, "autumn": 1.0, "winter": 0.9},
    }
    data.update(kwargs)
    return RateCardTerms(**data)


def make_job(**kwargs) -> QuoteJob:
    data = {"area_ha": 10.0, "distance_km": 20.0, "month": 7}
    data.update(kwargs)
    return QuoteJob(**data)


@pytest.mark.pricing
class TestQuoteFormula:

    def test_summer_flat_job(self):
        breakdown = calculate_quote(make_terms(), make_job())

        assert breakdown.base_cents == 50000
        assert breakdown.season == Season.SUMMER
        assert breakdown.seasonal_multiplier == 1.2
        assert breakdown.seasonal_adjusted_cents == 60000
        assert breakdown.terrain_multiplier == 1.0
        assert breakdown.multiplied_cents == 60000
        assert breakdown.travel_fixed_cents == 1000
        assert breakdown.travel_variable_cents == 1000
        assert breakdown.travel_cents == 2000
        assert breakdown.surcharges_cents == 0
        assert breakdown.subtotal_cents == 62000
        assert breakdown.min_charge_applied is False
        assert breakdown.total_cents == 62000

    def test_hilly_terrain_multiplier_and_surcharge(self):
        terms = make_terms(hilly_terrain_multiplier=1.25, hilly_terrain_surcharge_cents=3000)

        flat = calculate_quote(terms, make_job())
        hilly = calculate_quote(terms, make_job(terrain_conditions="HILLY"))
        mountainous = calculate_quote(terms, make_job(terrain_conditions="MOUNTAINOUS"))

        assert flat.total_cents == 62000
        assert hilly.multiplied_cents == 75000
        assert hilly.surcharges_cents == 3000
        assert hilly.total_cents == 80000
        assert mountainous.total_cents == hilly.total_cents

    def test_obstacles_multiplier_only_when_flagged(self):
        terms = make_terms(custom_multipliers={"obstacles": 1.1})

        clear = calculate_quote(terms, make_job())
        obstructed = calculate_quote(terms, make_job(has_obstacles=True))

        assert clear.terrain_multiplier == 1.0
        assert clear.total_cents == 62000
        assert obstructed.multiplied_cents == 66000
        assert obstructed.total_cents == 68000

    def test_other_custom_multipliers_always_apply(self):
        terms = make_terms(custom_multipliers={"drift_control": 1.1, "note": "n/a"})

        breakdown = calculate_quote(terms, make_job())

        assert breakdown.terrain_multiplier == pytest.approx(1.1)
        assert breakdown.multiplied_cents == 66000

    def test_risk_key_joins_terrain_product(self):
        terms = make_terms(risk_multipliers={"high": 1.5})

        assert calculate_quote(terms, make_job(risk_key="high")).total_cents == 92000
        assert calculate_quote(terms, make_job(risk_key="unknown")).total_cents == 62000

    def test_custom_surcharges_summed(self):
        terms = make_terms(custom_surcharges={"permit": 2500, "landing_pad": 1500, "bad": "x"})

        breakdown = calculate_quote(terms, make_job())

        assert breakdown.surcharges_cents == 4000
        assert breakdown.total_cents == 66000

    def test_min_charge_floor(self):
        breakdown = calculate_quote(make_terms(), make_job(area_ha=1.0, month=4))

        assert breakdown.subtotal_cents == 7000
        assert breakdown.min_charge_applied is True
        assert breakdown.total_cents == 20000

    def test_missing_or_zero_season_factor_is_neutral(self):
        terms = make_terms(seasonal_multipliers={"winter": 0})

        winter = calculate_quote(terms, make_job(month=1))
        spring = calculate_quote(terms, make_job(month=4))

        assert winter.seasonal_multiplier == 1.0
        assert spring.seasonal_multiplier == 1.0
        assert winter.total_cents == spring.total_cents == 52000

    def test_empty_maps_from_storage(self):
        terms = make_terms(seasonal_multipliers=None, custom_multipliers=None, custom_surcharges=None)

        assert calculate_quote(terms, make_job()).total_cents == 52000

    def test_total_out_of_range(self):
        terms = make_terms(base_rate_per_ha_cents=1_000_000)

        with pytest.raises(PricingError):
            calculate_quote(terms, make_job(area_ha=1_000_000))

    def test_pricing_error_is_value_error(self):
        assert issubclass(PricingError, ValueError)


@pytest.mark.pricing
class TestRounding:

    @pytest.mark.parametrize("amount,expected", [
        (0.0, 0),
        (0.49, 0),
        (0.5, 1),
        (2.5, 3),
        (12.5, 13),
        (12.49, 12),
        (99.999, 100),
    ])
    def test_round_half_up(self, amount, expected):
        assert round_cents(amount) == expected

    def test_base_amount_rounds_half_up(self):
        terms = make_terms(base_rate_per_ha_cents=5, min_charge_cents=0, travel_fixed_cents=0,
                           travel_rate_per_km_cents=0, seasonal_multipliers={})

        breakdown = calculate_quote(terms, make_job(area_ha=0.5, distance_km=0, month=1))

        assert breakdown.base_cents == 3
        assert breakdown.total_cents == 3


@pytest.mark.pricing
class TestSeasons:

    @pytest.mark.parametrize("month,season", [
        (3, Season.SPRING), (4, Season.SPRING), (5, Season.SPRING),
        (6, Season.SUMMER), (7, Season.SUMMER), (8, Season.SUMMER),
        (9, Season.AUTUMN), (10, Season.AUTUMN), (11, Season.AUTUMN),
        (12, Season.WINTER), (1, Season.WINTER), (2, Season.WINTER),
    ])
    def test_season_for_month(self, month, season):
        assert season_for_month(month) == season

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(PricingError):
            season_for_month(month)

    def test_quote_job_rejects_invalid_month(self):
        with pytest.raises(ValidationError):
            make_job(month=13)


@pytest.mark.pricing
class TestQuoteProperties:

    def test_total_non_decreasing_in_area(self):
        terms = make_terms()
        totals = [calculate_quote(terms, make_job(area_ha=a)).total_cents for a in (0.5, 1, 2, 5, 10, 50, 250)]

        assert totals == sorted(totals)

    def test_total_non_decreasing_in_distance(self):
        terms = make_terms()
        totals = [calculate_quote(terms, make_job(distance_km=d)).total_cents for d in (0, 1, 7.5, 20, 100, 400)]

        assert totals == sorted(totals)

    @pytest.mark.parametrize("area", [0.1, 1.0, 3.3, 12.0, 80.0])
    def test_total_never_below_min_charge(self, area):
        terms = make_terms(min_charge_cents=45000)

        assert calculate_quote(terms, make_job(area_ha=area)).total_cents >= 45000

    def test_neutral_multipliers_reduce_to_base_plus_travel(self):
        terms = make_terms(min_charge_cents=0)
        job = make_job(month=9, area_ha=3.3, distance_km=12.4)

        breakdown = calculate_quote(terms, job)

        assert breakdown.total_cents == round_cents(3.3 * 5000) + 1000 + round_cents(12.4 * 50)


@pytest.mark.pricing
class TestItalianNumbers:

    @pytest.mark.parametrize("raw,expected", [
        ("1.234,56", 1234.56),
        ("12,5", 12.5),
        ("12.5", 12.5),
        ("7", 7.0),
        (3, 3.0),
        (2.25, 2.25),
    ])
    def test_parse_italian_number(self, raw, expected):
        assert parse_italian_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["abc", "", True, None])
    def test_parse_rejects_garbage(self, raw):
        with pytest.raises(ValueError):
            parse_italian_number(raw)

    def test_euros_to_cents(self):
        assert euros_to_cents("4.869,57") == 486957
        assert euros_to_cents("12,5") == 1250
        assert euros_to_cents(486957) == 486957
        assert euros_to_cents(1500.0) == 1500

    def test_euros_to_cents_rejects_fractional_numbers(self):
        with pytest.raises(ValueError):
            euros_to_cents(12.5)

    def test_quote_request_accepts_italian_area(self):
        req = QuoteRequest(seller_org_id=1, service_type="SPRAY", area_ha="1.234,5", distance_km="12,5")

        assert req.area_ha == pytest.approx(1234.5)
        assert req.distance_km == pytest.approx(12.5)


@pytest.mark.pricing
class TestNonFiniteInput:

    def test_huge_area_is_a_pricing_error(self):
        with pytest.raises(PricingError):
            calculate_quote(make_terms(), make_job(area_ha=1e308))

    def test_infinite_multiplier_is_a_pricing_error(self):
        terms = make_terms(custom_multipliers={"slope": "inf"})

        with pytest.raises(PricingError):
            calculate_quote(terms, make_job())

    @pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan")])
    def test_round_cents_rejects_non_finite(self, amount):
        with pytest.raises(PricingError):
            round_cents(amount)

    @pytest.mark.parametrize("raw", ["Infinity", "-inf", "NaN", "1e400", float("inf"), float("nan")])
    def test_parse_rejects_non_finite(self, raw):
        with pytest.raises(ValueError):
            parse_italian_number(raw)

    @pytest.mark.parametrize("raw", ["Infinity", "1e300", "20.000.000,00", float("inf"), 1_000_000_001])
    def test_euros_to_cents_rejects_unbounded_amounts(self, raw):
        with pytest.raises(ValueError):
            euros_to_cents(raw)

    @pytest.mark.parametrize("field,value", [
        ("area_ha", "Infinity"),
        ("area_ha", 1e308),
        ("distance_km", float("inf")),
        ("distance_km", 1e9),
    ])
    def test_quote_request_rejects_unbounded_input(self, field, value):
        data = {"seller_org_id": 1, "service_type": "SPRAY", "area_ha": 5}
        data[field] = value

        with pytest.raises(ValidationError):
            QuoteRequest(**data)

    def test_quote_job_rejects_infinity(self):
        with pytest.raises(ValidationError):
            make_job(area_ha=float("inf"))
