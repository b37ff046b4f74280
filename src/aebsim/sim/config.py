"""
Simulation Configuration

Immutable configuration for one simulation session:
- Scenario kind and road environment
- AEB and lead-vehicle braking parameters
- Initial kinematics (speeds, gaps)
- Per-vehicle mass, drag area and length

Configurations are never edited in place. Use :meth:`SimConfig.patched`
(or ``dataclasses.replace``) to derive a new one; every construction is
validated and raises :class:`~aebsim.exceptions.ConfigurationError` on bad
input.
"""

import math
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml

from aebsim.exceptions import ConfigurationError
from aebsim.physics.environment import Surface, Weather
from aebsim.scenarios.templates import ScenarioKind
from aebsim.utils.units import kmh_to_mps


class Lighting(Enum):
    """Ambient lighting. Display-only, no effect on physics."""
    DAYLIGHT = "daylight"
    NIGHT = "night"


def _coerce_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise ConfigurationError(f"{name}: {value!r} is not one of {allowed}") from None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_problems(obj) -> List[str]:
    """Wrongly typed or non-finite numeric fields of a config dataclass."""
    problems: List[str] = []
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.type is int:
            if not isinstance(value, int) or isinstance(value, bool):
                problems.append(f"{f.name} must be an integer, got {value!r}")
        elif f.type is float or (f.type == Optional[float] and value is not None):
            if not _is_number(value):
                problems.append(f"{f.name} must be a number, got {value!r}")
            elif not math.isfinite(value):
                problems.append(f"{f.name} must be finite, got {value!r}")
    return problems


@dataclass(frozen=True)
class VehicleConfig:
    """Per-vehicle physical parameters."""

    mass_kg: float = 1500.0
    drag_area_m2: float = 0.65  # Cd·A
    length_m: float = 4.5  # contact distance and TTC gap

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigurationError if any parameter is out of range."""
        problems = _number_problems(self)
        if problems:
            raise ConfigurationError("; ".join(problems))
        if self.mass_kg <= 0:
            problems.append(f"mass_kg must be positive, got {self.mass_kg!r}")
        if self.length_m <= 0:
            problems.append(f"length_m must be positive, got {self.length_m!r}")
        if self.drag_area_m2 < 0:
            problems.append(f"drag_area_m2 must be non-negative, got {self.drag_area_m2!r}")
        if problems:
            raise ConfigurationError("; ".join(problems))


@dataclass(frozen=True)
class EnvironmentConfig:
    """Environmental inputs to the friction and resistance model."""

    air_temp_c: float = 20.0  # °C
    altitude_m: float = 0.0  # m
    headwind_mps: float = 0.0  # m/s, positive against travel
    water_film_mm: float = 0.0  # mm
    tire_pressure_psi: float = 35.0  # psi
    tread_depth_mm: float = 6.0  # mm
    surface_roughness: float = 0.3  # 0=smooth, 1=rough

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigurationError if any input is out of range."""
        problems = _number_problems(self)
        if problems:
            raise ConfigurationError("; ".join(problems))
        if self.water_film_mm < 0:
            problems.append(f"water_film_mm must be non-negative, got {self.water_film_mm!r}")
        if self.tire_pressure_psi < 0:
            problems.append(f"tire_pressure_psi must be non-negative, got {self.tire_pressure_psi!r}")
        if self.tread_depth_mm < 0:
            problems.append(f"tread_depth_mm must be non-negative, got {self.tread_depth_mm!r}")
        if not 0.0 <= self.surface_roughness <= 1.0:
            problems.append(f"surface_roughness must be in [0, 1], got {self.surface_roughness!r}")
        if problems:
            raise ConfigurationError("; ".join(problems))


@dataclass(frozen=True)
class SimConfig:
    """Complete configuration of a simulation session."""

    # Scenario and environment
    kind: ScenarioKind = ScenarioKind.CCRM
    weather: Weather = Weather.CLEAR
    surface: Surface = Surface.ASPHALT
    lighting: Lighting = Lighting.DAYLIGHT
    grade_deg: float = 0.0  # degrees, positive uphill

    # Impact and AEB
    restitution: float = 0.20
    reaction_delay_s: float = 0.0  # declared only; stepping does not consult it
    ttc_trigger_s: float = 1.6  # s
    lead_decel_1: float = 0.0  # m/s², negative activates constant braking

    # Timing
    tick_rate_hz: float = 20.0
    duration_s: float = 6.0  # advisory, the engine never stops itself

    # Initial kinematics
    ego_speed: float = kmh_to_mps(50.0)  # m/s
    lead1_speed: float = kmh_to_mps(20.0)  # m/s
    lead2_speed: float = 0.0  # m/s
    gap1: float = 25.0  # ego -> lead 1 centre gap [m]
    gap2: float = 12.0  # lead 1 -> lead 2 centre gap [m]
    vehicle_count: int = 2

    # Vehicles
    ego: VehicleConfig = field(default_factory=VehicleConfig)
    lead1: VehicleConfig = field(default_factory=VehicleConfig)
    lead2: VehicleConfig = field(default_factory=VehicleConfig)

    mu_override: Optional[float] = None
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)

    def __post_init__(self):
        object.__setattr__(self, 'kind', _coerce_enum(ScenarioKind, self.kind, 'kind'))
        object.__setattr__(self, 'weather', _coerce_enum(Weather, self.weather, 'weather'))
        object.__setattr__(self, 'surface', _coerce_enum(Surface, self.surface, 'surface'))
        object.__setattr__(self, 'lighting', _coerce_enum(Lighting, self.lighting, 'lighting'))
        self.validate()

    @property
    def dt(self) -> float:
        """Fixed tick size [s]."""
        return 1.0 / self.tick_rate_hz

    @property
    def vehicles(self) -> List[VehicleConfig]:
        """Vehicle configs of the active vehicles, ego first."""
        return [self.ego, self.lead1, self.lead2][:self.vehicle_count]

    @property
    def initial_speeds(self) -> List[float]:
        """Initial speeds of the active vehicles, ego first."""
        return [self.ego_speed, self.lead1_speed, self.lead2_speed][:self.vehicle_count]

    def validate(self):
        """
        Check every field, raising one ConfigurationError listing all problems.

        Nested vehicle and environment configs are re-checked too, so a config
        assembled by other means than the constructor is still caught.
        """
        problems: List[str] = []

        for name, enum_cls in (('kind', ScenarioKind), ('weather', Weather),
                               ('surface', Surface), ('lighting', Lighting)):
            if not isinstance(getattr(self, name), enum_cls):
                problems.append(f"{name} must be a {enum_cls.__name__}")

        # Range checks below compare numbers, so stop on type problems
        problems.extend(_number_problems(self))
        if problems:
            raise ConfigurationError("; ".join(problems))

        if self.vehicle_count not in (2, 3):
            problems.append(f"vehicle_count must be 2 or 3, got {self.vehicle_count!r}")
        if self.tick_rate_hz <= 0:
            problems.append(f"tick_rate_hz must be positive, got {self.tick_rate_hz!r}")
        if self.duration_s < 0:
            problems.append(f"duration_s must be non-negative, got {self.duration_s!r}")
        if not 0.0 <= self.restitution <= 1.0:
            problems.append(f"restitution must be in [0, 1], got {self.restitution!r}")
        if self.reaction_delay_s < 0:
            problems.append(f"reaction_delay_s must be non-negative, got {self.reaction_delay_s!r}")
        if self.ttc_trigger_s < 0:
            problems.append(f"ttc_trigger_s must be non-negative, got {self.ttc_trigger_s!r}")
        if self.lead_decel_1 > 0:
            problems.append(f"lead_decel_1 must be <= 0 (braking only), got {self.lead_decel_1!r}")
        for name in ('ego_speed', 'lead1_speed', 'lead2_speed'):
            if getattr(self, name) < 0:
                problems.append(f"{name} must be non-negative, got {getattr(self, name)!r}")
        for name in ('gap1', 'gap2'):
            if getattr(self, name) <= 0:
                problems.append(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.mu_override is not None and self.mu_override <= 0:
            problems.append(f"mu_override must be positive, got {self.mu_override!r}")

        for name in ('ego', 'lead1', 'lead2', 'environment'):
            try:
                getattr(self, name).validate()
            except ConfigurationError as e:
                problems.append(f"{name}: {e}")
            except AttributeError:
                problems.append(f"{name} has the wrong type")

        if problems:
            raise ConfigurationError("; ".join(problems))

    def patched(self, **changes) -> 'SimConfig':
        """Return a validated copy with ``changes`` applied."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimConfig':
        """Build a config from a plain mapping (as loaded from YAML)."""
        data = dict(data)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")

        try:
            for name in ('ego', 'lead1', 'lead2'):
                if isinstance(data.get(name), dict):
                    data[name] = VehicleConfig(**data[name])
            if isinstance(data.get('environment'), dict):
                data['environment'] = EnvironmentConfig(**data['environment'])
        except TypeError as e:
            raise ConfigurationError(str(e)) from None

        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping with enums replaced by their values."""
        data = asdict(self)
        for name in ('kind', 'weather', 'surface', 'lighting'):
            data[name] = getattr(self, name).value
        return data

    @classmethod
    def from_yaml(cls, filepath: str) -> 'SimConfig':
        """Load configuration from YAML file."""
        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        return cls.from_dict(config_dict)

    def to_yaml(self, filepath: str):
        """Save configuration to YAML file."""
        with open(filepath, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
