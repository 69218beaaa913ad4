# protocols.py
from typing import Optional, Union

from constants import (
    BURN_CENTER_TBSA_BY_DEPTH,
    BURN_DEPTH_INFO,
    BurnDepthInfo,
    FLUID_LIBRARY,
    MONITORING_THRESHOLDS,
    PARKLAND_CONSTANTS,
    BurnDepth,
    FluidType,
)
from models import (
    BurnFluidAssessment,
    FluidRecommendation,
    InvalidInputError,
    VitalSigns,
    require_number,
)
from fluids import ParklandEngine
from safety import MonitoringSupervisor


class FluidSelector:
    @staticmethod
    def composition(fluid: FluidType) -> str:
        props = FLUID_LIBRARY.get(fluid)
        return (f"{props.name}: Na {props.sodium_meq_l:g} mEq/L, K {props.potassium_meq_l:g} mEq/L, "
                f"glucose {props.glucose_g_l:g} g/L, {props.osmolarity:g} mOsm/L")

    @staticmethod
    def recommend_fluid_type(is_resuscitation: bool, can_tolerate_po: bool = False) -> FluidRecommendation:
        # 1. Resuscitation is always crystalloid IV (LR preferred over NS for acidosis)
        if is_resuscitation:
            fluid = FluidType.RL
            return FluidRecommendation(
                fluid=fluid,
                primary_fluid=FLUID_LIBRARY.get(fluid).name,
                route="IV",
                notes=[
                    FluidSelector.composition(fluid),
                    "Titrate to urine output, not to the calculated rate alone",
                    "Calculate from time of injury, not time of admission",
                ],
            )

        # 2. Maintenance: dextrose-containing, potassium supplemented
        fluid = FluidType.D5_HALF_KCL
        notes = [
            FluidSelector.composition(fluid),
            "Give in addition to the Parkland rate, do not replace it",
        ]
        if can_tolerate_po:
            route = "PO (preferred)"
            notes.append("Enteral route preferred when tolerated")
        else:
            route = "IV"
        return FluidRecommendation(
            fluid=fluid,
            primary_fluid=FLUID_LIBRARY.get(fluid).name,
            route=route,
            notes=notes,
        )


class BurnCenterCriteria:
    @staticmethod
    def requires_burn_center(depth: BurnDepth, tbsa_pct: float) -> bool:
        """Depth-specific TBSA referral thresholds (superficial never qualifies)."""
        if not isinstance(depth, BurnDepth):
            raise InvalidInputError(f"Invalid burn depth: {depth}")
        tbsa_pct = require_number("tbsa_pct", tbsa_pct)
        threshold = BURN_CENTER_TBSA_BY_DEPTH[depth]
        if threshold is None:
            return False
        return tbsa_pct > threshold

    @staticmethod
    def describe_depth(depth: Union[BurnDepth, str]) -> BurnDepthInfo:
        if not isinstance(depth, BurnDepth):
            try:
                depth = BurnDepth(depth)
            except ValueError:
                raise InvalidInputError(f"Invalid burn depth: {depth}") from None
        return BURN_DEPTH_INFO[depth]


class ProtocolEngine:
    @staticmethod
    def needs_maintenance_fluid(weight_kg: float, age_months: float) -> bool:
        # Children lack glycogen reserve; resuscitation fluid alone is not enough
        return (weight_kg <= MONITORING_THRESHOLDS.PROTOCOL_WEIGHT_KG
                or age_months < MONITORING_THRESHOLDS.PEDIATRIC_AGE_MONTHS)

    @staticmethod
    def assess_burn_fluid_management(weight_kg: float,
                                     tbsa_pct: float,
                                     age_months: float,
                                     hours_since_injury: float,
                                     current_iv_rate_ml_hr: Optional[float] = None,
                                     urine_output_ml_hr: Optional[float] = None,
                                     vitals: Optional[VitalSigns] = None,
                                     can_tolerate_po: bool = False) -> BurnFluidAssessment:
        """
        Bedside snapshot combining the Parkland plan with the latest monitoring data.
        Rate adjustment needs both the running rate and a urine output; if the
        running rate is unknown the calculated Parkland rate is used.
        """
        plan = ParklandEngine.calculate_fluids(weight_kg, tbsa_pct, hours_since_injury)
        target = MonitoringSupervisor.urine_output_target(weight_kg, age_months)

        adjustment = None
        if urine_output_ml_hr is not None:
            running_rate = current_iv_rate_ml_hr
            if running_rate is None:
                running_rate = plan.rate_now_ml_per_hr
            adjustment = MonitoringSupervisor.adjust_rate_by_urine_output(running_rate, urine_output_ml_hr)

        stability = MonitoringSupervisor.assess_vital_stability(vitals) if vitals is not None else None

        needs_maintenance = ProtocolEngine.needs_maintenance_fluid(weight_kg, age_months)
        recommendation = FluidSelector.recommend_fluid_type(
            is_resuscitation=plan.rate_now_ml_per_hr > 0,
            can_tolerate_po=can_tolerate_po,
        )

        # --- PROTOCOL STEPS ---
        steps = []
        if plan.rate_now_ml_per_hr > 0:
            steps.append(f"Run {recommendation.primary_fluid} at {plan.rate_now_ml_per_hr:g} ml/hr "
                         f"({plan.phase.value} phase)")
        else:
            steps.append("Parkland window complete: transition to maintenance fluids")
        steps.append(f"Target urine output {target.min_ml_hr:g}-{target.max_ml_hr:g} ml/hr, measured hourly")
        if adjustment is not None:
            steps.append(adjustment.reason)
        if stability is not None and not stability.is_stable:
            steps.extend(stability.recommendations)
        if needs_maintenance:
            steps.append(f"Add maintenance fluid at {plan.maintenance.ml_per_hr:g} ml/hr "
                         f"({plan.maintenance.method}) alongside resuscitation")

        # --- CLINICAL NOTES ---
        notes = []
        if plan.notice:
            notes.append(plan.notice)
        if weight_kg <= MONITORING_THRESHOLDS.PROTOCOL_WEIGHT_KG:
            notes.append("Pediatric weight: monitor more frequently, risk of both under- and over-resuscitation")
        if hours_since_injury > PARKLAND_CONSTANTS.TOTAL_HOURS:
            notes.append("Presentation beyond 24 hours: Parkland window has closed")
        elif hours_since_injury >= PARKLAND_CONSTANTS.FIRST_PHASE_HOURS:
            notes.append("First 8-hour phase assumed delivered; confirm actual volume given")

        return BurnFluidAssessment(
            parkland=plan,
            urine_output_target=target,
            rate_adjustment=adjustment,
            vital_stability=stability,
            fluid_recommendation=recommendation,
            needs_maintenance_fluid=needs_maintenance,
            protocol_recommendations=steps,
            clinical_notes=notes,
        )


recommend_fluid_type = FluidSelector.recommend_fluid_type
requires_burn_center = BurnCenterCriteria.requires_burn_center
describe_depth = BurnCenterCriteria.describe_depth
assess_burn_fluid_management = ProtocolEngine.assess_burn_fluid_management
