# safety.py
import logging
from typing import Optional

from constants import MONITORING_THRESHOLDS, round1
from models import (
    DataTypeError,
    OutOfRangeError,
    RateAction,
    RateAdjustment,
    UrineOutputTarget,
    VitalSigns,
    VitalStability,
    require_number,
)

logger = logging.getLogger("burnflow-engine")


class MonitoringSupervisor:
    """
    Hourly reassessment checks used after the Parkland plan is running.
    Stateless: the caller applies a recommendation and calls again next hour.
    """

    @staticmethod
    def adjust_rate_by_urine_output(current_rate_ml_hr: float, urine_output_ml_hr: float) -> RateAdjustment:
        """
        Titrate the infusion by 20% against the 30-50 ml/hr urine output window.
        """
        rate = require_number("current_rate_ml_hr", current_rate_ml_hr)
        urine = require_number("urine_output_ml_hr", urine_output_ml_hr)
        if rate < 0:
            raise OutOfRangeError(f"Infusion rate cannot be negative, got {rate:g} ml/hr")
        if urine < 0:
            raise OutOfRangeError(f"Urine output cannot be negative, got {urine:g} ml/hr")

        low = MONITORING_THRESHOLDS.URINE_LOW_ML_HR
        high = MONITORING_THRESHOLDS.URINE_HIGH_ML_HR
        step = MONITORING_THRESHOLDS.RATE_STEP_FRACTION
        step_pct = int(step * 100)

        if urine < low:
            result = RateAdjustment(
                new_rate_ml_per_hr=round1(rate * (1 + step)),
                adjustment=RateAction.INCREASE,
                reason=f"Urine output {urine:g} ml/hr below {low:g} ml/hr target: "
                       f"increase rate by {step_pct}% and reassess in 1 hour",
            )
        elif urine > high:
            result = RateAdjustment(
                new_rate_ml_per_hr=round1(rate * (1 - step)),
                adjustment=RateAction.DECREASE,
                reason=f"Urine output {urine:g} ml/hr above {high:g} ml/hr target: "
                       f"decrease rate by {step_pct}% to avoid over-resuscitation",
            )
        else:
            result = RateAdjustment(
                new_rate_ml_per_hr=round1(rate),
                adjustment=RateAction.MAINTAIN,
                reason=f"Urine output {urine:g} ml/hr within {low:g}-{high:g} ml/hr target: "
                       "maintain current rate",
            )

        logger.debug("Urine %.1f ml/hr -> %s (%.1f -> %.1f ml/hr)",
                     urine, result.adjustment.value, rate, result.new_rate_ml_per_hr)
        return result

    @staticmethod
    def assess_vital_stability(vitals: VitalSigns) -> VitalStability:
        """
        Burn-protocol stability screen: stable = HR < 60, BP > 90/60, SpO2 > 90%.
        Each reading is judged on its own; absent readings are skipped.
        """
        if not isinstance(vitals, VitalSigns):
            raise DataTypeError(f"vitals must be a VitalSigns instance, got {type(vitals).__name__}")

        reasons = []
        recommendations = []

        def reading(name: str, value) -> Optional[float]:
            return None if value is None else require_number(name, value)

        hr = reading("heart_rate", vitals.heart_rate)
        sbp = reading("systolic_bp", vitals.systolic_bp)
        dbp = reading("diastolic_bp", vitals.diastolic_bp)
        spo2 = reading("sp_o2_percent", vitals.sp_o2_percent)

        # 1. Heart Rate
        if hr is not None and hr >= MONITORING_THRESHOLDS.HEART_RATE_UNSTABLE_BPM:
            reasons.append(f"Heart rate {hr:g} bpm (target <{MONITORING_THRESHOLDS.HEART_RATE_UNSTABLE_BPM})")
            recommendations.append("Assess for hypovolemia, pain and anxiety; review fluid balance")

        # 2. Blood Pressure (each limb of 90/60 counts separately)
        if sbp is not None and sbp <= MONITORING_THRESHOLDS.SYSTOLIC_UNSTABLE_MMHG:
            reasons.append(f"Systolic BP {sbp:g} mmHg (target >{MONITORING_THRESHOLDS.SYSTOLIC_UNSTABLE_MMHG})")
            recommendations.append("Hypotension: reassess resuscitation volume and escalate if persistent")
        if dbp is not None and dbp <= MONITORING_THRESHOLDS.DIASTOLIC_UNSTABLE_MMHG:
            reasons.append(f"Diastolic BP {dbp:g} mmHg (target >{MONITORING_THRESHOLDS.DIASTOLIC_UNSTABLE_MMHG})")
            recommendations.append("Low diastolic pressure: check perfusion and capillary refill")

        # 3. Oxygenation
        if spo2 is not None and spo2 <= MONITORING_THRESHOLDS.SPO2_UNSTABLE_PCT:
            reasons.append(f"SpO2 {spo2:g}% (target >{MONITORING_THRESHOLDS.SPO2_UNSTABLE_PCT}%)")
            recommendations.append("Hypoxemia: give oxygen and evaluate for inhalation injury")

        if reasons:
            recommendations.append("Consider burn specialist or intensivist consultation")
        else:
            recommendations.append("Continue hourly urine output monitoring")
            recommendations.append("Maintain current fluid management")

        return VitalStability(
            is_stable=not reasons,
            unstable_reasons=reasons,
            recommendations=recommendations,
        )

    @staticmethod
    def urine_output_target(weight_kg: float, age_months: float) -> UrineOutputTarget:
        """
        > 20 kg: fixed 30-50 ml/hr protocol window.
        <= 20 kg: weight-scaled, 1-2 ml/kg/hr under 15 years, 0.5-1 ml/kg/hr otherwise.
        """
        weight_kg = require_number("weight_kg", weight_kg)
        age_months = require_number("age_months", age_months)
        if weight_kg <= 0:
            raise OutOfRangeError(f"Weight must be positive, got {weight_kg:g} kg")
        if age_months < 0:
            raise OutOfRangeError(f"Age cannot be negative, got {age_months:g} months")

        if weight_kg > MONITORING_THRESHOLDS.PROTOCOL_WEIGHT_KG:
            return UrineOutputTarget(
                min_ml_hr=MONITORING_THRESHOLDS.URINE_LOW_ML_HR,
                max_ml_hr=MONITORING_THRESHOLDS.URINE_HIGH_ML_HR,
                method="protocol (>20kg)",
            )

        if age_months < MONITORING_THRESHOLDS.PEDIATRIC_AGE_MONTHS:
            per_kg_min, per_kg_max = MONITORING_THRESHOLDS.PEDIATRIC_UO_ML_KG_HR
        else:
            per_kg_min, per_kg_max = MONITORING_THRESHOLDS.ADULT_UO_ML_KG_HR

        return UrineOutputTarget(
            min_ml_hr=round1(per_kg_min * weight_kg),
            max_ml_hr=round1(per_kg_max * weight_kg),
            method="weight-based (≤20kg)",
        )


adjust_rate_by_urine_output = MonitoringSupervisor.adjust_rate_by_urine_output
assess_vital_stability = MonitoringSupervisor.assess_vital_stability
urine_output_target = MonitoringSupervisor.urine_output_target
