"""
Acoustic Model
Converts an aircraft observation into a source noise level and propagates
it to a receiver.

The model is a calibrated NPD approximation: a category profile gives the
level at a 1 km reference distance for the estimated thrust setting, then
flight phase and psychoacoustic corrections are applied. Propagation uses
spherical spreading, a constant atmospheric absorption coefficient and a
simple ground effect term.
"""

from dataclasses import dataclass
from math import isfinite, log10, sqrt
from typing import Any, Dict, NamedTuple, Optional, Union

from lana.config import Constants, Settings
from lana.utils import haversine_distance, is_finite_number

from . import constants as C
from .constants import FlightPhase, NoiseTables, NPDProfile, DEFAULT_NOISE_TABLES

GROUND = "ground"


@dataclass(frozen=True)
class Altitude:
    """
    Barometric altitude: a number of feet or the explicit on-ground state.

    ADS-B feeds report 'ground' in place of a number for aircraft on the
    surface. Keeping that as a flag keeps the propagation math numeric.
    """

    value_ft: float = 0.0
    on_ground: bool = False

    @classmethod
    def feet(cls, value: float) -> "Altitude":
        return cls(float(value), False)

    @classmethod
    def ground(cls) -> "Altitude":
        return cls(0.0, True)

    @classmethod
    def parse(cls, raw: Any) -> Optional["Altitude"]:
        """Parse an 'alt_baro' value; None when missing or unreadable."""
        if isinstance(raw, str):
            if raw.strip().lower() == GROUND:
                return cls.ground()
            try:
                raw = float(raw)
            except ValueError:
                return None
        if is_finite_number(raw):
            return cls.feet(raw)
        return None

    @property
    def effective_ft(self) -> float:
        """Height used for propagation; ground and negative values read as 0."""
        if self.on_ground or self.value_ft < 0:
            return 0.0
        return self.value_ft


def _number(raw: Any) -> Optional[float]:
    if is_finite_number(raw):
        return float(raw)
    if isinstance(raw, str):
        try:
            value = float(raw)
        except ValueError:
            return None
        return value if isfinite(value) else None
    return None


def _text(raw: Any) -> Optional[str]:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


@dataclass(frozen=True)
class Observation:
    """One aircraft's reported state in one snapshot."""

    hex: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    altitude: Optional[Altitude] = None
    ground_speed: Optional[float] = None  # knots
    climb_rate: Optional[float] = None  # ft/min, geometric
    category: Optional[str] = None  # 'A1'..'D7'
    type_code: Optional[str] = None  # ICAO type designator

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Observation":
        """
        Build an observation from one ADS-B Exchange aircraft record.

        Garbled or missing fields become None; this never raises for a dict.
        """
        category = _text(record.get("category"))
        return cls(
            hex=_text(record.get("hex")),
            lat=_number(record.get("lat")),
            lon=_number(record.get("lon")),
            altitude=Altitude.parse(record.get("alt_baro")),
            ground_speed=_number(record.get("gs")),
            climb_rate=_number(record.get("geom_rate")),
            category=category.upper() if category else None,
            type_code=_text(record.get("t")),
        )

    @property
    def has_position(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def altitude_ft(self) -> float:
        """Altitude for propagation (feet); missing reads as ground level."""
        if self.altitude is None:
            return 0.0
        return self.altitude.effective_ft


AltitudeLike = Union[Altitude, float, int, str, None]


class Contribution(NamedTuple):
    """An observation audible at a point of interest."""

    source_level_db: float
    radius_km: float  # Audible ground radius


def _altitude_ft(altitude: AltitudeLike) -> Optional[float]:
    if not isinstance(altitude, Altitude):
        altitude = Altitude.parse(altitude)
    if altitude is None:
        return None
    return altitude.effective_ft


class AcousticModel:
    """
    NPD based aircraft noise model.

    Example:
        >>> model = AcousticModel()
        >>> level = model.calculate_source_level('A5', 250, 5000, 0)
        >>> model.received_level(level, 2.0)
    """

    def __init__(
        self,
        tables: NoiseTables = DEFAULT_NOISE_TABLES,
        threshold_db: float = Settings.AUDIBILITY_THRESHOLD_DB,
    ):
        """
        Initialize acoustic model.

        Args:
            tables: Read-only NPD, phase and thrust tables
            threshold_db: Level defining the edge of audibility
        """
        self.tables = tables
        self.threshold_db = threshold_db

    # --- Source level ---

    def npd_profile(
        self,
        category: Optional[str],
        ground_speed: Optional[float] = None,
        altitude_ft: Optional[float] = None,
    ) -> Optional[NPDProfile]:
        """
        Get NPD coefficients for a category.

        Unknown or missing categories get a synthetic profile picked from
        speed and altitude. Only categories mapped to None (parachutists)
        return None.
        """
        if category is not None and category in self.tables.npd_profiles:
            return self.tables.npd_profiles[category]
        return self.synthetic_profile(ground_speed, altitude_ft)

    @staticmethod
    def synthetic_profile(
        ground_speed: Optional[float], altitude_ft: Optional[float]
    ) -> NPDProfile:
        """Pick a stand-in profile from flight characteristics."""
        speed = ground_speed if ground_speed is not None else C.FALLBACK_SPEED_KT
        altitude = altitude_ft if altitude_ft is not None else C.FALLBACK_ALTITUDE_FT

        if altitude > 25000 and speed > 350:
            return C.SYNTHETIC_HEAVY
        if altitude > 15000 and speed > 250:
            return C.SYNTHETIC_MEDIUM
        if speed < 150:
            return C.SYNTHETIC_LIGHT
        return C.SYNTHETIC_DEFAULT

    def flight_phase(
        self,
        altitude_ft: Optional[float],
        climb_rate: Optional[float],
        ground_speed: Optional[float],
    ) -> FlightPhase:
        """
        Classify the flight phase; thresholds are checked in table order.

        Missing values read as 0.
        """
        altitude = altitude_ft or 0.0
        rate = climb_rate or 0.0
        speed = ground_speed or 0.0

        for phase, bounds in self.tables.phase_thresholds.items():
            if bounds.max_altitude_ft is not None and not altitude < bounds.max_altitude_ft:
                continue
            if bounds.min_climb_rate is not None and not rate > bounds.min_climb_rate:
                continue
            if bounds.max_climb_rate is not None and not rate < bounds.max_climb_rate:
                continue
            if bounds.max_abs_climb_rate is not None and not abs(rate) < bounds.max_abs_climb_rate:
                continue
            if bounds.min_speed_kt is not None and not speed > bounds.min_speed_kt:
                continue
            if bounds.max_speed_kt is not None and not speed < bounds.max_speed_kt:
                continue
            return phase

        return FlightPhase.CRUISE

    def thrust_fraction(self, phase: FlightPhase) -> float:
        """Fraction of maximum thrust for a flight phase."""
        return self.tables.thrust_fractions[phase]

    def calculate_source_level(
        self,
        category: Optional[str] = None,
        ground_speed: Optional[float] = None,
        altitude: AltitudeLike = None,
        climb_rate: Optional[float] = None,
    ) -> Optional[float]:
        """
        Calculate the source noise level at the 1 km reference distance.

        Args:
            category: ADS-B emitter category ('A1'..'D7'), may be None
            ground_speed: Ground speed in knots
            altitude: Barometric altitude (feet, 'ground' or Altitude)
            climb_rate: Geometric climb rate in ft/min

        Returns:
            Level in dB clamped to [35, 145], or None when the aircraft has
            no engine noise
        """
        altitude_ft = _altitude_ft(altitude)
        profile = self.npd_profile(category, ground_speed, altitude_ft)
        if profile is None:
            return None

        phase = self.flight_phase(altitude_ft, climb_rate, ground_speed)
        thrust = self.thrust_fraction(phase)

        base = (
            profile.A
            + profile.B * log10(thrust)
            + profile.C * log10(C.REFERENCE_DISTANCE_KM)
        )
        level = base + self.tables.phase_corrections[phase]
        level += self._psychoacoustic_penalty(profile, altitude_ft, climb_rate)

        return max(C.MIN_SOURCE_LEVEL_DB, min(C.MAX_SOURCE_LEVEL_DB, level))

    @staticmethod
    def _psychoacoustic_penalty(
        profile: NPDProfile, altitude_ft: Optional[float], climb_rate: Optional[float]
    ) -> float:
        penalty = 0.0

        # Propeller and rotor tonality
        if profile.category in C.TONAL_CATEGORIES:
            penalty += C.TONALITY_PENALTY_DB

        if profile.category == "helicopter" and (climb_rate or 0.0) < C.BVI_CLIMB_RATE_FPM:
            penalty += C.BVI_PENALTY_DB

        # Less atmospheric masking close to the ground
        if altitude_ft is not None and altitude_ft < C.LOW_ALTITUDE_PENALTY_CEILING_FT:
            penalty += max(0.0, C.LOW_ALTITUDE_PENALTY_MAX_DB - altitude_ft / 1000)

        return penalty

    def source_level(self, observation: Observation) -> Optional[float]:
        """Source level for an observation, see calculate_source_level()."""
        return self.calculate_source_level(
            observation.category,
            observation.ground_speed,
            observation.altitude,
            observation.climb_rate,
        )

    # --- Propagation ---

    @staticmethod
    def propagation_loss(distance_km: float) -> float:
        """Total loss (dB) over a slant distance: spreading, air, ground."""
        distance = max(distance_km, C.MIN_DISTANCE_KM)
        spreading = 20 * log10(distance / C.REFERENCE_DISTANCE_KM)
        absorption = C.ATMOSPHERIC_ABSORPTION_DB_PER_KM * distance
        ground = C.GROUND_EFFECT_FACTOR * log10(distance) if distance > 1 else 0.0
        return spreading + absorption + ground

    def received_level(self, source_level_db: float, distance_km: float) -> float:
        """
        Level heard at a slant distance from the source.

        Args:
            source_level_db: Source level at 1 km
            distance_km: Straight-line distance source to receiver

        Returns:
            Received level in dB, floored at 0
        """
        return max(0.0, source_level_db - self.propagation_loss(distance_km))

    @staticmethod
    def slant_distance_km(horizontal_km: float, altitude_ft: float) -> float:
        """3D distance from an elevated source to a ground receiver."""
        altitude_km = max(altitude_ft, 0.0) * Constants.FEET_TO_KM
        return sqrt(horizontal_km * horizontal_km + altitude_km * altitude_km)

    def effective_radius(
        self, source_level_db: Optional[float], altitude_ft: float = 0.0
    ) -> float:
        """
        Ground radius (km) inside which the source stays above threshold.

        The slant distance where the received level falls to the threshold
        is found by bisection over propagation_loss(), then projected to the
        ground for sources above 100 m.

        Returns:
            Radius clamped to [0.1, 50] km, or 0 when the source is not
            louder than the threshold
        """
        if source_level_db is None or source_level_db <= self.threshold_db:
            return 0.0

        budget = source_level_db - self.threshold_db
        low, high = C.MIN_DISTANCE_KM, 2 * C.MAX_AUDIBLE_RADIUS_KM
        if self.propagation_loss(high) <= budget:
            slant = high
        else:
            for _ in range(60):
                mid = (low + high) / 2
                if self.propagation_loss(mid) < budget:
                    low = mid
                else:
                    high = mid
            slant = (low + high) / 2

        radius = slant
        altitude_m = max(altitude_ft, 0.0) * Constants.FEET_TO_METERS
        if altitude_m > C.SLANT_CORRECTION_MIN_ALTITUDE_M:
            altitude_km = altitude_m / 1000
            radius = sqrt(max(0.0, slant * slant - altitude_km * altitude_km))

        return max(C.MIN_AUDIBLE_RADIUS_KM, min(C.MAX_AUDIBLE_RADIUS_KM, radius))

    def contribution(
        self, observation: Observation, poi_lat: float, poi_lon: float
    ) -> Optional[Contribution]:
        """
        Check whether an observation is heard at a point of interest.

        Returns:
            Source level and audible radius, or None when the observation
            has no position, no source, or is beyond its audible radius
        """
        if not observation.has_position:
            return None

        source_level = self.source_level(observation)
        if source_level is None:
            return None

        radius_km = self.effective_radius(source_level, observation.altitude_ft)
        if radius_km <= 0:
            return None
        if haversine_distance(poi_lat, poi_lon, observation.lat, observation.lon) > radius_km:
            return None

        return Contribution(source_level, radius_km)
