"""
Noise Model Constants

NPD (noise-power-distance) coefficients, flight phase thresholds and thrust
settings used by the acoustic model. All tables are read-only views built
once at import time.

NPD curves: SEL = A + B * log10(thrust) + C * log10(distance_km)
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional


class FlightPhase(Enum):
    """Coarse operating regime of an aircraft."""

    TAKEOFF = "takeoff"
    APPROACH = "approach"
    CLIMB = "climb"
    DESCENT = "descent"
    PATTERN = "pattern"
    CRUISE = "cruise"


class NPDProfile(NamedTuple):
    """NPD coefficients for one aircraft class."""

    category: str  # Noise class, e.g. 'light', 'heavy', 'helicopter'
    A: float
    B: float
    C: float
    max_thrust: float  # Relative to heavy jets


# Reference distance for source levels (km)
REFERENCE_DISTANCE_KM = 1.0

# Output clamp for source levels (dB)
MIN_SOURCE_LEVEL_DB = 35.0
MAX_SOURCE_LEVEL_DB = 145.0

# Propagation
MIN_DISTANCE_KM = 0.01  # Floor avoiding the log10(0) singularity
ATMOSPHERIC_ABSORPTION_DB_PER_KM = 1.5  # Frequency-averaged, broadband
GROUND_EFFECT_FACTOR = 2.0  # dB per decade beyond 1 km
MIN_AUDIBLE_RADIUS_KM = 0.1
MAX_AUDIBLE_RADIUS_KM = 50.0
SLANT_CORRECTION_MIN_ALTITUDE_M = 100.0

# Psychoacoustic penalties (dB)
TONALITY_PENALTY_DB = 5.0
TONAL_CATEGORIES = frozenset({"light", "helicopter"})
BVI_PENALTY_DB = 3.0  # Helicopter blade-vortex interaction
BVI_CLIMB_RATE_FPM = -300.0
LOW_ALTITUDE_PENALTY_CEILING_FT = 3000.0
LOW_ALTITUDE_PENALTY_MAX_DB = 3.0

# Synthetic profile selection when the category is unknown
FALLBACK_SPEED_KT = 150.0
FALLBACK_ALTITUDE_FT = 5000.0

_OBSTACLE_PROFILE = NPDProfile("medium", 65, 20, -20, 0.7)

NPD_PROFILES: Mapping[str, Optional[NPDProfile]] = MappingProxyType(
    {
        "A1": NPDProfile("light", 70, 15, -20, 0.3),  # Single engine, small twins
        "A2": NPDProfile("regional", 75, 20, -20, 0.5),  # Regional jets, turboprops
        "A3": NPDProfile("medium", 80, 25, -20, 0.8),  # Narrow body jets
        "A4": NPDProfile("medium_high", 75, 27, -20, 0.9),  # 757 class
        "A5": NPDProfile("heavy", 88, 30, -20, 1.0),  # Wide body, cargo
        "A6": NPDProfile("military", 115, 40, -20, 1.5),  # High performance
        "A7": NPDProfile("helicopter", 78, 20, -20, 0.6),
        "B1": NPDProfile("silent", 40, 0, -20, 0.01),  # Gliders
        "B2": NPDProfile("balloon", 45, 5, -20, 0.05),  # Lighter than air
        "B3": None,  # Parachutists: no engine noise
        "B4": NPDProfile("ultralight", 70, 15, -20, 0.1),
        "B6": NPDProfile("drone", 65, 10, -20, 0.05),
        "B7": NPDProfile("rocket", 140, 50, -20, 10.0),
        # Point obstacles, surface vehicles, no information
        **{
            code: _OBSTACLE_PROFILE
            for code in (
                ["A0"]
                + [f"C{i}" for i in range(6)]
                + [f"D{i}" for i in range(8)]
            )
        },
    }
)

# Synthetic profiles, chosen from speed and altitude
SYNTHETIC_HEAVY = NPDProfile("heavy", 105, 35, -20, 1.0)
SYNTHETIC_MEDIUM = NPDProfile("medium", 95, 30, -20, 0.8)
SYNTHETIC_LIGHT = NPDProfile("light", 85, 20, -20, 0.3)
SYNTHETIC_DEFAULT = NPDProfile("regional", 90, 25, -20, 0.6)


class PhaseThreshold(NamedTuple):
    """Bounds for one flight phase; None means unconstrained."""

    max_altitude_ft: Optional[float] = None
    min_climb_rate: Optional[float] = None  # Exclusive, ft/min
    max_climb_rate: Optional[float] = None  # Exclusive, ft/min
    max_abs_climb_rate: Optional[float] = None
    min_speed_kt: Optional[float] = None  # Exclusive
    max_speed_kt: Optional[float] = None  # Exclusive


# Evaluated in insertion order, first match wins, CRUISE otherwise
PHASE_THRESHOLDS: Mapping[FlightPhase, PhaseThreshold] = MappingProxyType(
    {
        FlightPhase.TAKEOFF: PhaseThreshold(
            max_altitude_ft=3000, min_climb_rate=1000, min_speed_kt=100
        ),
        FlightPhase.APPROACH: PhaseThreshold(max_altitude_ft=5000, max_climb_rate=-300),
        FlightPhase.CLIMB: PhaseThreshold(max_altitude_ft=15000, min_climb_rate=300),
        FlightPhase.DESCENT: PhaseThreshold(max_climb_rate=-100),
        FlightPhase.PATTERN: PhaseThreshold(
            max_altitude_ft=3000, max_abs_climb_rate=300, max_speed_kt=200
        ),
    }
)

# Fraction of maximum thrust per phase
THRUST_FRACTIONS: Mapping[FlightPhase, float] = MappingProxyType(
    {
        FlightPhase.TAKEOFF: 1.0,
        FlightPhase.CLIMB: 0.85,
        FlightPhase.APPROACH: 0.4,  # Moderate thrust with drag
        FlightPhase.DESCENT: 0.25,
        FlightPhase.PATTERN: 0.5,
        FlightPhase.CRUISE: 0.6,
    }
)

# Additive level correction per phase (dB)
PHASE_CORRECTIONS_DB: Mapping[FlightPhase, float] = MappingProxyType(
    {
        FlightPhase.TAKEOFF: 5.0,
        FlightPhase.CLIMB: 2.0,
        FlightPhase.APPROACH: 8.0,
        FlightPhase.DESCENT: 1.0,
        FlightPhase.CRUISE: 0.0,
        FlightPhase.PATTERN: 2.0,
    }
)


@dataclass(frozen=True)
class NoiseTables:
    """Bundle of the lookup tables handed to the acoustic model."""

    npd_profiles: Mapping[str, Optional[NPDProfile]] = field(
        default_factory=lambda: NPD_PROFILES
    )
    phase_thresholds: Mapping[FlightPhase, PhaseThreshold] = field(
        default_factory=lambda: PHASE_THRESHOLDS
    )
    thrust_fractions: Mapping[FlightPhase, float] = field(
        default_factory=lambda: THRUST_FRACTIONS
    )
    phase_corrections: Mapping[FlightPhase, float] = field(
        default_factory=lambda: PHASE_CORRECTIONS_DB
    )


DEFAULT_NOISE_TABLES = NoiseTables()
