"""
Road Environment Model

Derives the vehicle-independent part of the longitudinal physics from the
road environment:
- Tire-road friction baseline (surface table scaled by weather)
- Rolling resistance (surface table scaled by roughness and rain)
- Air density from temperature and altitude
- Water-film (hydroplaning) friction loss

The result is cached once per simulation state as an
:class:`EnvironmentBaseline` and combined with each vehicle's mass and
drag area every tick via :meth:`EnvironmentBaseline.for_vehicle`.
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Weather(Enum):
    """Weather conditions."""
    CLEAR = "clear"
    RAINING = "raining"
    SNOWING = "snowing"
    FOG = "fog"


class Surface(Enum):
    """Road surface type."""
    ASPHALT = "asphalt"
    CONCRETE = "concrete"
    GRAVEL = "gravel"
    ICE = "ice"


# Peak friction coefficient on a dry surface
BASE_MU: Dict[Surface, float] = {
    Surface.ASPHALT: 0.85,
    Surface.CONCRETE: 0.90,
    Surface.GRAVEL: 0.65,
    Surface.ICE: 0.20,
}

# Rolling resistance coefficient on a smooth dry surface
BASE_CRR: Dict[Surface, float] = {
    Surface.ASPHALT: 0.012,
    Surface.CONCRETE: 0.011,
    Surface.GRAVEL: 0.028,
    Surface.ICE: 0.010,
}

WEATHER_MU_FACTOR: Dict[Weather, float] = {
    Weather.CLEAR: 1.0,
    Weather.RAINING: 0.70,
    Weather.SNOWING: 0.35,
    Weather.FOG: 0.95,
}

RAIN_CRR_FACTOR = 1.15

# Vehicle-level defaults shared by every car
DEFAULT_JERK = 80.0  # m/s³
DEFAULT_AEB_TARGET_G = 0.95

# Standard atmosphere
SEA_LEVEL_AIR_DENSITY = 1.225  # kg/m³ at 15°C
SCALE_HEIGHT = 8500.0  # m
REFERENCE_TEMP_K = 288.15

MPH_TO_MPS = 0.44704


@dataclass(frozen=True)
class PhysParams:
    """Per-vehicle longitudinal parameters for one tick."""

    mass_kg: float
    drag_area_m2: float  # Cd·A
    air_density: float  # kg/m³
    crr: float
    grade_rad: float
    mu0: float
    mu_speed_decay: float
    jerk: float  # m/s³, may be inf for an immediate command
    aeb_target_g: float  # braking target as a fraction of g
    headwind_mps: float = 0.0
    water_film_mm: float = 0.0
    tire_pressure_psi: float = 35.0
    tread_depth_mm: float = 6.0


def air_density(air_temp_c: float, altitude_m: float) -> float:
    """
    Air density from temperature and altitude.

    Exponential atmosphere with scale height 8.5 km, corrected for
    temperature relative to 15°C. Temperature is floored at 200 K.

    Args:
        air_temp_c: Air temperature [°C]
        altitude_m: Altitude above sea level [m]

    Returns:
        Density [kg/m³]
    """
    t_kelvin = air_temp_c + 273.15
    rho_alt = SEA_LEVEL_AIR_DENSITY * np.exp(-altitude_m / SCALE_HEIGHT)
    return float(rho_alt * (REFERENCE_TEMP_K / max(200.0, t_kelvin)))


def hydroplaning_speed(tire_pressure_psi: float, tread_depth_mm: float) -> float:
    """
    Speed at which a tire fully hydroplanes [m/s].

    Horne's rule (V ≈ 9·sqrt(psi) mph), adjusted by ±3% per mm of tread
    away from the 3 mm reference.
    """
    v_mph_base = 9.0 * np.sqrt(max(tire_pressure_psi, 1.0))
    return float(MPH_TO_MPS * v_mph_base * (1.0 + 0.03 * (tread_depth_mm - 3.0)))


def water_film_factor(
    speed: float,
    water_film_mm: float,
    tire_pressure_psi: float,
    tread_depth_mm: float
) -> float:
    """
    Friction multiplier for a standing water film.

    1.0 below 60% of the hydroplaning speed; ramps down proportionally to
    the water depth up to 140% of it. Never drops below 0.2.

    Args:
        speed: Vehicle speed [m/s]
        water_film_mm: Water film depth [mm]
        tire_pressure_psi: Tire inflation pressure [psi]
        tread_depth_mm: Remaining tread depth [mm]

    Returns:
        Multiplier in [0.2, 1.0]
    """
    if water_film_mm <= 0.1:
        return 1.0

    v_h = hydroplaning_speed(tire_pressure_psi, tread_depth_mm)
    if speed <= 0.6 * v_h:
        return 1.0

    over = float(np.clip((speed - 0.6 * v_h) / (0.8 * v_h), 0.0, 1.0))
    k = over * (water_film_mm / 2.0)
    return max(0.2, 1.0 - 0.8 * k)


def friction_baseline(weather: Weather, surface: Surface) -> float:
    """Baseline friction coefficient mu0 for a weather/surface pair."""
    mu0 = BASE_MU[surface]
    if weather == Weather.SNOWING and surface == Surface.ICE:
        # Snow on ice does not make ice any worse
        return mu0
    return mu0 * WEATHER_MU_FACTOR[weather]


def rolling_resistance(weather: Weather, surface: Surface, roughness: float) -> float:
    """Rolling resistance coefficient Crr."""
    crr = BASE_CRR[surface] * (1.0 + 0.5 * roughness)
    if weather == Weather.RAINING:
        crr *= RAIN_CRR_FACTOR
    return crr


@dataclass(frozen=True)
class EnvironmentBaseline:
    """Vehicle-independent physics snapshot, cached per simulation state."""

    mu0: float
    mu_speed_decay: float  # fraction of mu lost per 30 m/s
    crr: float
    air_density: float  # kg/m³
    grade_rad: float
    headwind_mps: float
    water_film_mm: float
    tire_pressure_psi: float
    tread_depth_mm: float
    jerk: float = DEFAULT_JERK  # m/s³
    aeb_target_g: float = DEFAULT_AEB_TARGET_G

    @classmethod
    def from_environment(
        cls,
        weather: Weather,
        surface: Surface,
        grade_deg: float = 0.0,
        air_temp_c: float = 20.0,
        altitude_m: float = 0.0,
        surface_roughness: float = 0.3,
        headwind_mps: float = 0.0,
        water_film_mm: float = 0.0,
        tire_pressure_psi: float = 35.0,
        tread_depth_mm: float = 6.0,
        mu_override: Optional[float] = None,
    ) -> 'EnvironmentBaseline':
        """Build the baseline from raw environment inputs."""
        mu0 = friction_baseline(weather, surface) if mu_override is None else mu_override

        return cls(
            mu0=mu0,
            mu_speed_decay=0.25 if weather == Weather.RAINING else 0.10,
            crr=rolling_resistance(weather, surface, surface_roughness),
            air_density=air_density(air_temp_c, altitude_m),
            grade_rad=float(np.radians(grade_deg)),
            headwind_mps=headwind_mps,
            water_film_mm=water_film_mm,
            tire_pressure_psi=tire_pressure_psi,
            tread_depth_mm=tread_depth_mm,
        )

    @classmethod
    def from_config(cls, config) -> 'EnvironmentBaseline':
        """Build the baseline from a :class:`~aebsim.sim.config.SimConfig`."""
        env = config.environment
        return cls.from_environment(
            weather=config.weather,
            surface=config.surface,
            grade_deg=config.grade_deg,
            air_temp_c=env.air_temp_c,
            altitude_m=env.altitude_m,
            surface_roughness=env.surface_roughness,
            headwind_mps=env.headwind_mps,
            water_film_mm=env.water_film_mm,
            tire_pressure_psi=env.tire_pressure_psi,
            tread_depth_mm=env.tread_depth_mm,
            mu_override=config.mu_override,
        )

    def for_vehicle(self, mass_kg: float, drag_area_m2: float) -> PhysParams:
        """Fresh per-vehicle parameter set; the baseline itself is never modified."""
        return PhysParams(
            mass_kg=mass_kg,
            drag_area_m2=drag_area_m2,
            air_density=self.air_density,
            crr=self.crr,
            grade_rad=self.grade_rad,
            mu0=self.mu0,
            mu_speed_decay=self.mu_speed_decay,
            jerk=self.jerk,
            aeb_target_g=self.aeb_target_g,
            headwind_mps=self.headwind_mps,
            water_film_mm=self.water_film_mm,
            tire_pressure_psi=self.tire_pressure_psi,
            tread_depth_mm=self.tread_depth_mm,
        )
