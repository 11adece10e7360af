import math
import pytest
from app.services.geo import haversine_km, distance_or_default, EARTH_RADIUS_KM


class TestHaversine:

    def test_same_point_is_zero(self):
        assert haversine_km(45.46, 9.19, 45.46, 9.19) == 0.0

    def test_one_degree_of_latitude(self):
        assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(EARTH_RADIUS_KM * math.pi / 180)

    def test_symmetric(self):
        there = haversine_km(45.4642, 9.19, 41.9028, 12.4964)
        back = haversine_km(41.9028, 12.4964, 45.4642, 9.19)

        assert there == pytest.approx(back)

    def test_milan_to_rome(self):
        assert haversine_km(45.4642, 9.19, 41.9028, 12.4964) == pytest.approx(477, rel=0.01)


class TestDistanceOrDefault:

    def test_known_points(self):
        assert distance_or_default(0.0, 0.0, 1.0, 0.0, 20.0) == pytest.approx(111.19, rel=1e-3)

    @pytest.mark.parametrize("coords", [
        (None, 9.0, 45.0, 9.0),
        (45.0, None, 45.0, 9.0),
        (45.0, 9.0, None, 9.0),
        (45.0, 9.0, 45.0, None),
    ])
    def test_unknown_location_uses_default(self, coords):
        assert distance_or_default(*coords, 20.0) == 20.0
