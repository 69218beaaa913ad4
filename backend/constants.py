import math
from enum import Enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

VERSION = "1.0.0"


def round1(value: float) -> float:
    """Half-up rounding to one decimal (2.25 -> 2.3, not banker's 2.2)."""
    return math.floor(value * 10 + 0.5) / 10


# --- 1. ENUMS ---

class AgeGroup(Enum):
    """Lund-Browder age columns. Values are the chart's column headers."""
    INFANT = "0"        # < 1 yr
    TODDLER = "1"       # 1-4 yr
    CHILD = "5"         # 5-9 yr
    ADOLESCENT = "10"   # 10-14 yr
    TEEN = "15"         # 15-17 yr
    ADULT = "Adult"     # 18+ yr

# Chart column order (youngest -> oldest)
AGE_GROUP_ORDER = (
    AgeGroup.INFANT, AgeGroup.TODDLER, AgeGroup.CHILD,
    AgeGroup.ADOLESCENT, AgeGroup.TEEN, AgeGroup.ADULT,
)

class BodyRegion(Enum):
    HEAD = "Head"
    NECK = "Neck"
    ANT_TRUNK = "Ant_Trunk"
    POST_TRUNK = "Post_Trunk"
    R_BUTTOCK = "R_Buttock"
    L_BUTTOCK = "L_Buttock"
    GENITALIA = "Genitalia"
    R_U_ARM = "R_U_Arm"
    L_U_ARM = "L_U_Arm"
    R_L_ARM = "R_L_Arm"
    L_L_ARM = "L_L_Arm"
    R_HAND = "R_Hand"
    L_HAND = "L_Hand"
    R_THIGH = "R_Thigh"
    L_THIGH = "L_Thigh"
    R_LEG = "R_Leg"
    L_LEG = "L_Leg"
    R_FOOT = "R_Foot"
    L_FOOT = "L_Foot"

BILATERAL_PAIRS = (
    (BodyRegion.R_BUTTOCK, BodyRegion.L_BUTTOCK),
    (BodyRegion.R_U_ARM, BodyRegion.L_U_ARM),
    (BodyRegion.R_L_ARM, BodyRegion.L_L_ARM),
    (BodyRegion.R_HAND, BodyRegion.L_HAND),
    (BodyRegion.R_THIGH, BodyRegion.L_THIGH),
    (BodyRegion.R_LEG, BodyRegion.L_LEG),
    (BodyRegion.R_FOOT, BodyRegion.L_FOOT),
)

# Quarter steps only. 0 is allowed so a region can be explicitly cleared.
VALID_BURN_FRACTIONS = (0, 0.25, 0.5, 0.75, 1.0)

class BurnDepth(Enum):
    SUPERFICIAL = "superficial"
    SUPERFICIAL_PARTIAL = "superficial-partial"
    DEEP_PARTIAL = "deep-partial"
    FULL_THICKNESS = "full-thickness"

class FluidPhase(Enum):
    FIRST_8H = "first8"
    NEXT_16H = "next16"

class FluidType(Enum):
    RL = "ringer_lactate"                   # Parkland resuscitation fluid
    D5_HALF_KCL = "d5_half_ns_20_kcl"       # Maintenance (IV or PO)


# --- 2. CLINICAL CONSTANTS ---

class PARKLAND_CONSTANTS:
    ML_PER_KG_PER_PCT = 4.0
    FIRST_PHASE_HOURS = 8.0
    SECOND_PHASE_HOURS = 16.0
    TOTAL_HOURS = 24.0
    TIMELINE_HOURS = 24
    MIN_INDICATED_TBSA_PCT = 10.0  # Below this, advisory only

class MAINTENANCE_CONSTANTS:
    # Holliday-Segar 4-2-1: (band width kg, ml/kg/hr). Tiers are cumulative.
    TIERS = ((10.0, 4.0), (10.0, 2.0), (math.inf, 1.0))
    METHOD = "4-2-1"

class MONITORING_THRESHOLDS:
    URINE_LOW_ML_HR = 30.0
    URINE_HIGH_ML_HR = 50.0
    RATE_STEP_FRACTION = 0.20       # +/- 20% per hourly reassessment

    PROTOCOL_WEIGHT_KG = 20.0       # > 20 kg uses fixed 30-50 ml/hr target
    PEDIATRIC_AGE_MONTHS = 180      # < 15 yr uses 1-2 ml/kg/hr
    PEDIATRIC_UO_ML_KG_HR = (1.0, 2.0)
    ADULT_UO_ML_KG_HR = (0.5, 1.0)

    # Burn-protocol vitals convention: stable = HR < 60, BP > 90/60, SpO2 > 90
    HEART_RATE_UNSTABLE_BPM = 60
    SYSTOLIC_UNSTABLE_MMHG = 90
    DIASTOLIC_UNSTABLE_MMHG = 60
    SPO2_UNSTABLE_PCT = 90

class PATIENT_LIMITS:
    AGE_MONTHS = (0, 1200)          # 0-100 yr
    WEIGHT_KG = (0.5, 300.0)
    HOURS_SINCE_INJURY = (0.0, 168.0)  # 7 days

class CLINICAL_WARNING_THRESHOLDS:
    MAJOR_BURN_TBSA_PCT = 60.0
    DELAYED_PRESENTATION_HOURS = 24.0
    INFANT_AGE_MONTHS = 12

# Region chart tolerance (sum of one age column vs 100%)
CHART_SUM_TOLERANCE = 1.0


# --- 3. FLUID LIBRARY ---

@dataclass
class FluidProperties:
    name: str
    sodium_meq_l: float
    glucose_g_l: float
    potassium_meq_l: float = 0.0
    osmolarity: float = 280.0  # Default to isotonic if not specified

class FLUID_LIBRARY:
    """
    Burn-care fluids referenced by the protocol helpers.
    """
    SPECS = {
        FluidType.RL: FluidProperties(
            name="LR (Lactated Ringers)",
            sodium_meq_l=130, glucose_g_l=0,
            potassium_meq_l=4.0,
            osmolarity=273.0
        ),
        FluidType.D5_HALF_KCL: FluidProperties(
            name="D5 1/2 NS + 20mEq KCl/L",
            sodium_meq_l=77.0, glucose_g_l=50.0,
            potassium_meq_l=20.0,
            osmolarity=446.0
        ),
    }

    @staticmethod
    def get(fluid_enum: FluidType) -> FluidProperties:
        return FLUID_LIBRARY.SPECS[fluid_enum]


# --- 4. BURN DEPTH REFERENCE ---

@dataclass(frozen=True)
class BurnDepthInfo:
    depth: BurnDepth
    name: str
    description: str
    appearance: str
    sensation: str
    healing_time: str

BURN_DEPTH_INFO: Mapping[BurnDepth, BurnDepthInfo] = MappingProxyType({
    BurnDepth.SUPERFICIAL: BurnDepthInfo(
        BurnDepth.SUPERFICIAL, "Superficial (1st Degree)",
        "Epidermis only, like mild sunburn",
        "Red, dry, no blisters", "Painful", "3-6 days"),
    BurnDepth.SUPERFICIAL_PARTIAL: BurnDepthInfo(
        BurnDepth.SUPERFICIAL_PARTIAL, "Superficial Partial Thickness (2nd Degree)",
        "Epidermis and upper dermis",
        "Red, moist, blisters present", "Very painful", "1-3 weeks"),
    BurnDepth.DEEP_PARTIAL: BurnDepthInfo(
        BurnDepth.DEEP_PARTIAL, "Deep Partial Thickness (2nd Degree)",
        "Epidermis and deep dermis",
        "White/red, less moist, may blister", "Decreased sensation", "3-8 weeks"),
    BurnDepth.FULL_THICKNESS: BurnDepthInfo(
        BurnDepth.FULL_THICKNESS, "Full Thickness (3rd Degree)",
        "Through all skin layers",
        "White, charred, or leathery", "No sensation", "Requires grafting"),
})

# TBSA % above which a given depth meets burn-center referral criteria
BURN_CENTER_TBSA_BY_DEPTH = MappingProxyType({
    BurnDepth.SUPERFICIAL: None,  # Never on its own
    BurnDepth.SUPERFICIAL_PARTIAL: 10.0,
    BurnDepth.DEEP_PARTIAL: 5.0,
    BurnDepth.FULL_THICKNESS: 2.0,
})


# --- 5. LUND-BROWDER CHART ---

@dataclass(frozen=True)
class RegionPercentageTable:
    """
    Immutable (BodyRegion, AgeGroup) -> % body surface area lookup.
    Built once and passed into the TBSA engine; swap in another instance
    to calculate against an alternate chart.
    """
    name: str
    percentages: Mapping[BodyRegion, Mapping[AgeGroup, float]] = field(repr=False)

    @classmethod
    def from_rows(cls, name: str, rows: Dict[BodyRegion, tuple]) -> "RegionPercentageTable":
        """rows: region -> six values in AGE_GROUP_ORDER."""
        frozen = {}
        for region, values in rows.items():
            if len(values) != len(AGE_GROUP_ORDER):
                raise ValueError(f"{region.value}: expected {len(AGE_GROUP_ORDER)} age columns, got {len(values)}")
            frozen[region] = MappingProxyType(dict(zip(AGE_GROUP_ORDER, values)))
        return cls(name=name, percentages=MappingProxyType(frozen))

    def percent(self, region: BodyRegion, age_group: AgeGroup) -> float:
        return self.percentages[region][age_group]

    def regions(self) -> tuple:
        return tuple(self.percentages.keys())

    def column(self, age_group: AgeGroup) -> Dict[BodyRegion, float]:
        return {region: ages[age_group] for region, ages in self.percentages.items()}

    def column_total(self, age_group: AgeGroup) -> float:
        return sum(ages[age_group] for ages in self.percentages.values())


#                       0     1     5    10    15  Adult
LUND_BROWDER = RegionPercentageTable.from_rows("Lund-Browder (1944)", {
    BodyRegion.HEAD:       (19,   17,   13,   11,   9,   7),
    BodyRegion.NECK:       (2,    2,    2,    2,    2,   2),
    BodyRegion.ANT_TRUNK:  (13,   13,   13,   13,   13,  13),
    BodyRegion.POST_TRUNK: (13,   13,   13,   13,   13,  13),
    BodyRegion.R_BUTTOCK:  (2.5,  2.5,  2.5,  2.5,  2.5, 2.5),
    BodyRegion.L_BUTTOCK:  (2.5,  2.5,  2.5,  2.5,  2.5, 2.5),
    BodyRegion.GENITALIA:  (1,    1,    1,    1,    1,   1),
    BodyRegion.R_U_ARM:    (4,    4,    4,    4,    4,   4),
    BodyRegion.L_U_ARM:    (4,    4,    4,    4,    4,   4),
    BodyRegion.R_L_ARM:    (3,    3,    3,    3,    3,   3),
    BodyRegion.L_L_ARM:    (3,    3,    3,    3,    3,   3),
    BodyRegion.R_HAND:     (2.5,  2.5,  2.5,  2.5,  2.5, 2.5),
    BodyRegion.L_HAND:     (2.5,  2.5,  2.5,  2.5,  2.5, 2.5),
    BodyRegion.R_THIGH:    (5.5,  6.5,  8,    8.5,  9,   9.5),  # Grows as head shrinks
    BodyRegion.L_THIGH:    (5.5,  6.5,  8,    8.5,  9,   9.5),
    BodyRegion.R_LEG:      (5,    5,    5.5,  6,    6.5, 7),
    BodyRegion.L_LEG:      (5,    5,    5.5,  6,    6.5, 7),
    BodyRegion.R_FOOT:     (3.5,  3.5,  3.5,  3.5,  3.5, 3.5),
    BodyRegion.L_FOOT:     (3.5,  3.5,  3.5,  3.5,  3.5, 3.5),
})
