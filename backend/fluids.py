"""
BurnFlow: Parkland Fluid Engine
===============================
Translates Weight + %TBSA + Time Since Injury into a phased 24-hour
resuscitation plan, plus the Holliday-Segar maintenance rate.

All volumes are carried at full precision and rounded to one decimal only
when the FluidPlan is built.
"""

import logging
from typing import List

from constants import (
    MAINTENANCE_CONSTANTS,
    PARKLAND_CONSTANTS,
    FluidPhase,
    round1,
)
from models import (
    FluidPlan,
    MaintenanceRate,
    OutOfRangeError,
    TimelinePoint,
    require_number,
)

logger = logging.getLogger("burnflow-engine")

SMALL_BURN_NOTICE = (
    "Note: Parkland formula is typically indicated for burns ≥10% TBSA. "
    "Consider local protocol for smaller burns."
)


class ParklandEngine:

    @staticmethod
    def _check_weight(weight_kg) -> float:
        weight_kg = require_number("weight_kg", weight_kg)
        if weight_kg <= 0:
            raise OutOfRangeError(f"Weight must be positive, got {weight_kg:g} kg")
        return weight_kg

    @staticmethod
    def calculate_maintenance(weight_kg: float) -> MaintenanceRate:
        """
        Holliday-Segar 4-2-1 (ml/hr).
        Tiers stack: a 25 kg child gets 10x4 + 10x2 + 5x1 = 65 ml/hr.
        """
        weight_kg = ParklandEngine._check_weight(weight_kg)

        rate = 0.0
        remaining = weight_kg
        for band_kg, ml_per_kg_hr in MAINTENANCE_CONSTANTS.TIERS:
            portion = min(remaining, band_kg)
            rate += portion * ml_per_kg_hr
            remaining -= portion
            if remaining <= 0:
                break

        return MaintenanceRate(ml_per_hr=round1(rate), method=MAINTENANCE_CONSTANTS.METHOD)

    @staticmethod
    def convert_to_ml_per_kg_per_hr(ml_per_hr: float, weight_kg: float) -> float:
        weight_kg = ParklandEngine._check_weight(weight_kg)
        return round1(require_number("ml_per_hr", ml_per_hr) / weight_kg)

    @staticmethod
    def build_timeline(first_8h_ml: float, next_16h_ml: float) -> List[TimelinePoint]:
        """
        Cumulative target volume at each whole hour 0..24.
        Hour 8 belongs to the second phase (first phase complete, +0 of the second).
        """
        first_hours = PARKLAND_CONSTANTS.FIRST_PHASE_HOURS
        second_hours = PARKLAND_CONSTANTS.SECOND_PHASE_HOURS

        timeline = []
        for hour in range(PARKLAND_CONSTANTS.TIMELINE_HOURS + 1):
            if hour < first_hours:
                target = (hour / first_hours) * first_8h_ml
                phase = FluidPhase.FIRST_8H
            else:
                target = first_8h_ml + ((hour - first_hours) / second_hours) * next_16h_ml
                phase = FluidPhase.NEXT_16H
            timeline.append(TimelinePoint(
                hour_from_injury=hour,
                target_cumulative_ml=round1(target),
                phase=phase,
            ))
        return timeline

    @staticmethod
    def calculate_fluids(weight_kg: float, tbsa_pct: float, hours_since_injury: float) -> FluidPlan:
        """
        Parkland: 4 ml x kg x %TBSA over 24h, half in the first 8h from INJURY
        (not from arrival), half over the next 16h.

        Time only redistributes the fixed total:
          h < 8       -> catch up the rest of phase 1 over the hours left in it
          8 <= h <= 24 -> phase 1 assumed given; spread the phase 2 balance
          h > 24      -> resuscitation window closed; maintenance only
        """
        weight_kg = ParklandEngine._check_weight(weight_kg)
        tbsa_pct = require_number("tbsa_pct", tbsa_pct)
        hours = require_number("hours_since_injury", hours_since_injury)
        if not (0 <= tbsa_pct <= 100):
            raise OutOfRangeError(f"TBSA must be between 0 and 100, got {tbsa_pct:g}")
        if hours < 0:
            raise OutOfRangeError(f"Hours since injury cannot be negative, got {hours:g}")

        first_hours = PARKLAND_CONSTANTS.FIRST_PHASE_HOURS
        second_hours = PARKLAND_CONSTANTS.SECOND_PHASE_HOURS
        window_hours = PARKLAND_CONSTANTS.TOTAL_HOURS

        # 1. The Parkland total and its phase split
        total_ml = PARKLAND_CONSTANTS.ML_PER_KG_PER_PCT * weight_kg * tbsa_pct
        first_8h_ml = total_ml / 2
        next_16h_ml = total_ml / 2

        # 2. Where are we in the window?
        if hours < first_hours:
            delivered_first = (hours / first_hours) * first_8h_ml
            delivered_next = 0.0
            remaining_first = first_8h_ml - delivered_first
            remaining_next = next_16h_ml
            rate_now = remaining_first / (first_hours - hours)
            phase = FluidPhase.FIRST_8H
        elif hours <= window_hours:
            delivered_first = first_8h_ml
            delivered_next = ((hours - first_hours) / second_hours) * next_16h_ml
            remaining_first = 0.0
            remaining_next = next_16h_ml - delivered_next
            hours_left = window_hours - hours
            # h == 24 exactly: nothing left and no time left
            rate_now = remaining_next / hours_left if hours_left > 0 else 0.0
            phase = FluidPhase.NEXT_16H
        else:
            delivered_first = first_8h_ml
            delivered_next = next_16h_ml
            remaining_first = 0.0
            remaining_next = 0.0
            rate_now = 0.0
            phase = FluidPhase.NEXT_16H

        notice = None
        if tbsa_pct < PARKLAND_CONSTANTS.MIN_INDICATED_TBSA_PCT:
            notice = SMALL_BURN_NOTICE

        logger.debug("Parkland %.1f ml for %.1f kg / %.1f%% at %.2f h: %.1f ml/hr (%s)",
                     total_ml, weight_kg, tbsa_pct, hours, rate_now, phase.value)

        return FluidPlan(
            total_ml=round1(total_ml),
            first_8h_ml=round1(first_8h_ml),
            next_16h_ml=round1(next_16h_ml),
            delivered_first_8h_ml=round1(delivered_first),
            delivered_next_16h_ml=round1(delivered_next),
            remaining_first_8h_ml=round1(max(0.0, remaining_first)),
            remaining_next_16h_ml=round1(max(0.0, remaining_next)),
            rate_now_ml_per_hr=round1(max(0.0, rate_now)),
            phase=phase,
            timeline=ParklandEngine.build_timeline(first_8h_ml, next_16h_ml),
            maintenance=ParklandEngine.calculate_maintenance(weight_kg),
            notice=notice,
        )


calculate_fluids = ParklandEngine.calculate_fluids
