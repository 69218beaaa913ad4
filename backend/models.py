"""
BurnFlow: Data Dictionary
=========================
Inputs (what the clinician enters), results (what the engine returns) and the
error taxonomy shared by every engine module.

NO CALCULATION is implemented here. The only logic is input-shape guarding in
__post_init__, so an invalid PatientAttributes can never exist.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from constants import (
    VERSION,
    PATIENT_LIMITS,
    AgeGroup,
    BodyRegion,
    BurnDepth,
    FluidPhase,
    FluidType,
)

# --- 1. ERRORS ---

class BurnCalculationError(ValueError):
    """Base class for inputs the engine refuses to calculate with."""
    pass

class OutOfRangeError(BurnCalculationError):
    """Numeric input outside the clinically/physically valid domain. Never clamped."""
    pass

class InvalidInputError(BurnCalculationError):
    """Unrecognized region, disallowed fraction, or non-finite number."""
    pass

class DataTypeError(TypeError):
    """Raised when inputs are wrong python types (str instead of float)."""
    pass


def require_number(name: str, value) -> float:
    """Type + finiteness guard used at every engine entry point."""
    # bool is an int subclass; True kg is not a weight
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataTypeError(f"Field '{name}' must be numeric, got {type(value).__name__}")
    if not math.isfinite(value):
        raise InvalidInputError(f"Field '{name}' must be a finite number, got {value}")
    return float(value)


def require_in_range(name: str, value, low: float, high: float) -> float:
    value = require_number(name, value)
    if not (low <= value <= high):
        raise OutOfRangeError(f"Invalid {name}: {value:g} (allowed {low:g}-{high:g})")
    return value


# --- 2. INPUT LAYER ---

@dataclass(frozen=True)
class RegionSelection:
    """
    One body region's involvement. `region` may arrive as a raw string from a
    UI form; the TBSA engine resolves and rejects unknown names.
    """
    region: Union[BodyRegion, str]
    fraction: float
    depth: Optional[BurnDepth] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RegionSelection":
        depth = data.get("depth")
        if depth is not None and not isinstance(depth, BurnDepth):
            depth = BurnDepth(depth)
        return cls(region=data["region"], fraction=data["fraction"], depth=depth)


@dataclass(frozen=True)
class SpecialSites:
    """Anatomical sites that meet burn-center referral criteria regardless of TBSA."""
    face: bool = False
    hands: bool = False
    feet: bool = False
    perineum: bool = False
    major_joints: bool = False

    def involved(self) -> List[str]:
        labels = {
            "face": "face", "hands": "hands", "feet": "feet",
            "perineum": "perineum", "major_joints": "major joints",
        }
        return [label for attr, label in labels.items() if getattr(self, attr)]


@dataclass(frozen=True)
class PatientAttributes:
    """
    Bedside data for one assessment. Frozen: a calculation never sees it change.
    """
    age_months: float
    weight_kg: float
    hours_since_injury: float
    mechanism: Optional[str] = None
    special_sites: SpecialSites = field(default_factory=SpecialSites)

    def __post_init__(self):
        # 1. Type Safety (prevent string math crashes)
        for name in ("age_months", "weight_kg", "hours_since_injury"):
            require_number(name, getattr(self, name))

        if self.mechanism is not None and not isinstance(self.mechanism, str):
            raise DataTypeError(f"mechanism must be text, got {type(self.mechanism).__name__}")
        if not isinstance(self.special_sites, SpecialSites):
            raise DataTypeError("special_sites must be a SpecialSites instance")

        # 2. Standard Range Checks
        require_in_range("age_months", self.age_months, *PATIENT_LIMITS.AGE_MONTHS)
        require_in_range("weight_kg", self.weight_kg, *PATIENT_LIMITS.WEIGHT_KG)
        require_in_range("hours_since_injury", self.hours_since_injury, *PATIENT_LIMITS.HOURS_SINCE_INJURY)


@dataclass(frozen=True)
class VitalSigns:
    """All optional: a missing reading is skipped, never treated as failing."""
    heart_rate: Optional[float] = None
    systolic_bp: Optional[float] = None
    diastolic_bp: Optional[float] = None
    sp_o2_percent: Optional[float] = None


# --- 3. OUTPUT LAYER ---

@dataclass(frozen=True)
class TbsaResult:
    tbsa_pct: float
    breakdown: Dict[BodyRegion, float]
    age_group: AgeGroup
    warnings: List[str] = field(default_factory=list)
    # Informational; area per depth for selections that carried one
    depth_totals: Dict[BurnDepth, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TimelinePoint:
    hour_from_injury: int
    target_cumulative_ml: float
    phase: FluidPhase


@dataclass(frozen=True)
class MaintenanceRate:
    ml_per_hr: float
    method: str


@dataclass(frozen=True)
class FluidPlan:
    """
    Parkland resuscitation plan at a point in time since injury.
    All volumes in ml, rates in ml/hr, rounded to one decimal.
    """
    total_ml: float
    first_8h_ml: float
    next_16h_ml: float
    delivered_first_8h_ml: float
    delivered_next_16h_ml: float
    remaining_first_8h_ml: float
    remaining_next_16h_ml: float
    rate_now_ml_per_hr: float
    phase: FluidPhase
    timeline: List[TimelinePoint]
    maintenance: MaintenanceRate
    notice: Optional[str] = None


class RateAction(Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"


@dataclass(frozen=True)
class RateAdjustment:
    new_rate_ml_per_hr: float
    adjustment: RateAction
    reason: str


@dataclass(frozen=True)
class VitalStability:
    is_stable: bool
    unstable_reasons: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UrineOutputTarget:
    min_ml_hr: float
    max_ml_hr: float
    method: str


@dataclass(frozen=True)
class FluidRecommendation:
    fluid: FluidType
    primary_fluid: str
    route: str
    notes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class BurnFluidAssessment:
    """One-call bedside snapshot: plan + monitoring verdicts + protocol advice."""
    parkland: FluidPlan
    urine_output_target: UrineOutputTarget
    rate_adjustment: Optional[RateAdjustment]
    vital_stability: Optional[VitalStability]
    fluid_recommendation: FluidRecommendation
    needs_maintenance_fluid: bool
    protocol_recommendations: List[str] = field(default_factory=list)
    clinical_notes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChartValidation:
    valid: bool
    column_totals: Dict[AgeGroup, float]
    errors: List[str] = field(default_factory=list)


@dataclass
class AuditLog:
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    action: str = "patient_validation"
    inputs_hash: int = 0
    model_version: str = VERSION


@dataclass
class ValidationResult:
    """Tagged result: success + warnings, or failure + errors. Never raises."""
    success: bool
    patient: Optional[PatientAttributes]
    errors: List[str]
    warnings: List[str]
    audit_log: Optional[AuditLog] = None
