"""
Tests for the acoustic model.
"""

import math

import pytest

from lana.noise.acoustics import AcousticModel, Altitude, Observation
from lana.noise.constants import (
    DEFAULT_NOISE_TABLES,
    NPD_PROFILES,
    SYNTHETIC_DEFAULT,
    SYNTHETIC_HEAVY,
    SYNTHETIC_LIGHT,
    SYNTHETIC_MEDIUM,
    FlightPhase,
)

CATEGORY_CODES = [
    "A1", "A2", "A3", "A4", "A5", "A6", "A7",
    "B1", "B2", "B4", "B6", "B7", "A0", "C1", "D7",
]

FLIGHT_STATES = [
    # speed, altitude, climb rate
    (0, "ground", 0),
    (15, 0, 0),
    (160, 1500, 1800),
    (140, 2500, -700),
    (280, 9000, 1500),
    (450, 37000, 0),
    (300, 24000, -1500),
    (None, None, None),
]


@pytest.fixture
def model():
    return AcousticModel()


class TestAltitude:
    """Tests for the tagged altitude value."""

    def test_parse_ground(self):
        altitude = Altitude.parse("ground")
        assert altitude.on_ground is True
        assert altitude.effective_ft == 0.0

    def test_parse_number(self):
        assert Altitude.parse(5000) == Altitude.feet(5000)
        assert Altitude.parse("3500").effective_ft == 3500

    def test_negative_reads_as_ground_level(self):
        assert Altitude.parse(-75).effective_ft == 0.0

    def test_unreadable(self):
        assert Altitude.parse(None) is None
        assert Altitude.parse("n/a") is None
        assert Altitude.parse(float("nan")) is None


class TestObservation:
    """Tests for parsing ADS-B records."""

    def test_from_record(self):
        obs = Observation.from_record(
            {
                "hex": "a1b2c3",
                "lat": 47.6,
                "lon": -122.3,
                "alt_baro": 5000,
                "gs": 250.5,
                "geom_rate": -640,
                "category": "a3",
                "t": "B738",
            }
        )
        assert obs.has_position
        assert obs.altitude_ft == 5000
        assert obs.ground_speed == 250.5
        assert obs.climb_rate == -640
        assert obs.category == "A3"
        assert obs.type_code == "B738"

    def test_garbled_fields(self):
        """Garbled fields become None instead of raising."""
        obs = Observation.from_record(
            {"lat": "north", "lon": None, "alt_baro": "ground", "gs": [], "category": 7}
        )
        assert not obs.has_position
        assert obs.altitude.on_ground
        assert obs.ground_speed is None
        assert obs.category is None

    def test_missing_altitude_is_ground_level(self):
        assert Observation.from_record({"lat": 1, "lon": 2}).altitude_ft == 0.0

    def test_nan_position(self):
        obs = Observation.from_record({"lat": float("nan"), "lon": 2.0})
        assert not obs.has_position


class TestFlightPhase:
    """Tests for flight phase classification."""

    @pytest.mark.parametrize(
        "altitude, rate, speed, expected",
        [
            (1500, 1800, 160, FlightPhase.TAKEOFF),
            (1500, 1800, 90, FlightPhase.CLIMB),  # Too slow for takeoff
            (2500, -700, 140, FlightPhase.APPROACH),
            (9000, 1500, 280, FlightPhase.CLIMB),
            (24000, -1500, 300, FlightPhase.DESCENT),
            (6000, -200, 250, FlightPhase.DESCENT),
            (1000, 0, 100, FlightPhase.PATTERN),
            (1000, 0, 250, FlightPhase.CRUISE),  # Too fast for the pattern
            (37000, 0, 450, FlightPhase.CRUISE),
            (None, None, None, FlightPhase.PATTERN),  # Missing reads as 0
        ],
    )
    def test_classification(self, model, altitude, rate, speed, expected):
        assert model.flight_phase(altitude, rate, speed) is expected

    def test_priority_order(self, model):
        """Approach wins over descent when both match."""
        assert model.flight_phase(4000, -500, 180) is FlightPhase.APPROACH

    def test_thrust_fractions(self, model):
        assert model.thrust_fraction(FlightPhase.TAKEOFF) == 1.0
        assert model.thrust_fraction(FlightPhase.CLIMB) == 0.85
        assert model.thrust_fraction(FlightPhase.APPROACH) == 0.4
        assert model.thrust_fraction(FlightPhase.DESCENT) == 0.25
        assert model.thrust_fraction(FlightPhase.PATTERN) == 0.5
        assert model.thrust_fraction(FlightPhase.CRUISE) == 0.6


class TestSourceLevel:
    """Tests for source level computation."""

    def test_heavy_cruise(self, model):
        """A5 at 5000 ft, level: 88 + 30*log10(0.6), no corrections."""
        level = model.calculate_source_level("A5", 250, 5000, 0)
        assert level == pytest.approx(88 + 30 * math.log10(0.6))

    def test_light_pattern(self, model):
        """A1 in the pattern gets pattern, tonality and low altitude terms."""
        level = model.calculate_source_level("A1", 100, 1000, 0)
        expected = 70 + 15 * math.log10(0.5) + 2 + 5 + 2
        assert level == pytest.approx(expected)

    def test_helicopter_descent_penalty(self, model):
        """Helicopters descending fast get the blade-vortex penalty."""
        level = model.calculate_source_level("A7", 80, 2000, -500)
        expected = 78 + 20 * math.log10(0.4) + 8 + 5 + 3 + 1
        assert level == pytest.approx(expected)

    def test_ground_altitude(self, model):
        """'ground' is 0 ft: full low altitude penalty."""
        on_ground = model.calculate_source_level("A3", 10, "ground", 0)
        expected = 80 + 25 * math.log10(0.5) + 2 + 3
        assert on_ground == pytest.approx(expected)

    def test_clamped_to_maximum(self, model):
        assert model.calculate_source_level("B7", 300, 1000, 5000) == 145.0

    def test_parachutist_has_no_source(self, model):
        assert model.calculate_source_level("B3", 10, 8000, -1000) is None

    @pytest.mark.parametrize("category", CATEGORY_CODES)
    @pytest.mark.parametrize("speed, altitude, rate", FLIGHT_STATES)
    def test_range_for_known_categories(self, model, category, speed, altitude, rate):
        level = model.calculate_source_level(category, speed, altitude, rate)
        assert math.isfinite(level)
        assert 35.0 <= level <= 145.0

    @pytest.mark.parametrize("category", [None, "", "Z9", "XX"])
    @pytest.mark.parametrize("speed, altitude, rate", FLIGHT_STATES)
    def test_range_for_fallback(self, model, category, speed, altitude, rate):
        """Unknown categories still produce a finite, clamped level."""
        level = model.calculate_source_level(category, speed, altitude, rate)
        assert level is not None
        assert math.isfinite(level)
        assert 35.0 <= level <= 145.0

    def test_observation_without_classification(self, model):
        """No category and no type code still yields a level."""
        obs = Observation.from_record({"lat": 47.6, "lon": -122.3, "gs": 420, "alt_baro": 33000})
        assert model.source_level(obs) == pytest.approx(105 + 35 * math.log10(0.6))


class TestSyntheticProfile:
    """Tests for the fallback profile selection."""

    def test_selection(self, model):
        assert model.synthetic_profile(400, 30000) is SYNTHETIC_HEAVY
        assert model.synthetic_profile(300, 20000) is SYNTHETIC_MEDIUM
        assert model.synthetic_profile(100, 2000) is SYNTHETIC_LIGHT
        assert model.synthetic_profile(200, 8000) is SYNTHETIC_DEFAULT

    def test_missing_values_use_defaults(self, model):
        """150 kt / 5000 ft defaults select the medium default profile."""
        assert model.synthetic_profile(None, None) is SYNTHETIC_DEFAULT

    def test_known_category_bypasses_fallback(self, model):
        assert model.npd_profile("A3", 100, 2000) is NPD_PROFILES["A3"]
        assert model.npd_profile("Q1", 100, 2000) is SYNTHETIC_LIGHT


class TestPropagation:
    """Tests for received level and audible radius."""

    def test_received_at_reference_distance(self, model):
        """At 1 km only atmospheric absorption applies."""
        assert model.received_level(80, 1.0) == pytest.approx(78.5)

    def test_received_at_ten_km(self, model):
        """20 dB spreading + 15 dB absorption + 2 dB ground effect."""
        assert model.received_level(80, 10.0) == pytest.approx(43.0)

    def test_received_floor(self, model):
        assert model.received_level(40, 50.0) == 0.0

    def test_distance_floor(self, model):
        assert model.received_level(80, 0.0) == pytest.approx(model.received_level(80, 0.01))

    def test_slant_distance(self, model):
        assert model.slant_distance_km(3.0, 0) == pytest.approx(3.0)
        assert model.slant_distance_km(0.0, 10000) == pytest.approx(3.048)

    def test_radius_zero_below_threshold(self, model):
        assert model.effective_radius(35.0) == 0.0
        assert model.effective_radius(None) == 0.0

    def test_radius_reaches_threshold(self, model):
        """The received level at the audible radius equals the threshold."""
        source = model.calculate_source_level("A5", 250, 5000, 0)
        radius = model.effective_radius(source, 5000)
        slant = model.slant_distance_km(radius, 5000)
        assert model.received_level(source, slant) == pytest.approx(35.0, abs=1e-6)

    def test_radius_at_ground_level(self, model):
        radius = model.effective_radius(80.0, 0)
        assert model.received_level(80.0, radius) == pytest.approx(35.0, abs=1e-6)

    def test_radius_clamped(self, model):
        """Inaudible from the ground clamps up, loud sources clamp down."""
        assert model.effective_radius(36.0, 30000) == pytest.approx(0.1)
        assert 0.1 <= model.effective_radius(145.0, 0) <= 50.0

    def test_louder_sources_reach_further(self, model):
        assert model.effective_radius(90, 0) > model.effective_radius(70, 0)


class TestTables:
    """Tests for the lookup tables."""

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            NPD_PROFILES["A1"] = None
        with pytest.raises(TypeError):
            DEFAULT_NOISE_TABLES.thrust_fractions[FlightPhase.CRUISE] = 1.0

    def test_every_phase_has_settings(self):
        for phase in FlightPhase:
            assert phase in DEFAULT_NOISE_TABLES.thrust_fractions
            assert phase in DEFAULT_NOISE_TABLES.phase_corrections


class TestContribution:
    """Tests for audibility at a point of interest."""

    def test_overhead(self, model):
        obs = Observation.from_record(
            {"lat": 47.6062, "lon": -122.3321, "alt_baro": 5000, "gs": 250, "category": "A5"}
        )
        contribution = model.contribution(obs, 47.6062, -122.3321)
        assert contribution.source_level_db == pytest.approx(88 + 30 * math.log10(0.6))
        assert contribution.radius_km == pytest.approx(
            model.effective_radius(contribution.source_level_db, 5000)
        )

    def test_beyond_radius(self, model):
        obs = Observation.from_record(
            {"lat": 47.9062, "lon": -122.3321, "alt_baro": 5000, "gs": 250, "category": "A5"}
        )
        assert model.contribution(obs, 47.6062, -122.3321) is None

    def test_no_position_or_source(self, model):
        assert model.contribution(Observation(category="A5"), 47.6, -122.3) is None
        parachutist = Observation(lat=47.6, lon=-122.3, category="B3")
        assert model.contribution(parachutist, 47.6, -122.3) is None
