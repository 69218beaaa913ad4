"""
BurnFlow: Lund-Browder TBSA Engine
==================================
Age-band resolution and per-region surface-area aggregation.
"""

import logging
from typing import Dict, Iterable, List

from constants import (
    AGE_GROUP_ORDER,
    BILATERAL_PAIRS,
    CHART_SUM_TOLERANCE,
    CLINICAL_WARNING_THRESHOLDS,
    LUND_BROWDER,
    PATIENT_LIMITS,
    VALID_BURN_FRACTIONS,
    AgeGroup,
    BodyRegion,
    BurnDepth,
    RegionPercentageTable,
    round1,
)
from models import (
    ChartValidation,
    InvalidInputError,
    OutOfRangeError,
    RegionSelection,
    TbsaResult,
    require_number,
)

logger = logging.getLogger("burnflow-engine")

# (upper bound in years, group); first match wins
_AGE_BOUNDARIES_YEARS = (
    (1, AgeGroup.INFANT),
    (5, AgeGroup.TODDLER),
    (10, AgeGroup.CHILD),
    (15, AgeGroup.ADOLESCENT),
    (18, AgeGroup.TEEN),
)


class LundBrowderEngine:
    """
    The TBSA Core.
    Translates Age + Region Selections -> Age Group -> % Body Surface Area.
    """

    @staticmethod
    def classify_age(age_months: float) -> AgeGroup:
        """
        Maps age in months to a Lund-Browder age column.
        Boundaries are on completed years: 11 months -> '0', 12 months -> '1'.
        """
        age_months = require_number("age_months", age_months)
        low, high = PATIENT_LIMITS.AGE_MONTHS
        if age_months < low:
            raise OutOfRangeError(f"Age cannot be negative: {age_months:g} months")
        if age_months > high:
            raise OutOfRangeError(f"Age exceeds maximum (100 years): {age_months:g} months")

        years = age_months / 12.0
        for upper_years, group in _AGE_BOUNDARIES_YEARS:
            if years < upper_years:
                return group
        return AgeGroup.ADULT

    @staticmethod
    def _resolve_region(region) -> BodyRegion:
        if isinstance(region, BodyRegion):
            return region
        try:
            return BodyRegion(region)
        except ValueError:
            raise InvalidInputError(f"Invalid region: {region}") from None

    @staticmethod
    def _check_fraction(fraction) -> float:
        if isinstance(fraction, bool) or not isinstance(fraction, (int, float)) \
                or fraction not in VALID_BURN_FRACTIONS:
            raise InvalidInputError(
                f"Invalid fraction: {fraction}. Must be 0, 0.25, 0.5, 0.75, or 1"
            )
        return float(fraction)

    @staticmethod
    def _check_covered(region: BodyRegion, table: RegionPercentageTable) -> BodyRegion:
        if region not in table.percentages:
            raise InvalidInputError(f"Invalid region: {region.value} (not in chart '{table.name}')")
        return region

    @staticmethod
    def validate_selections(selections: Iterable[RegionSelection],
                            table: RegionPercentageTable = LUND_BROWDER) -> List[RegionSelection]:
        """
        Resolves every region name against the chart and checks every fraction
        BEFORE any math, so a bad entry never produces a partial result.
        """
        resolved = []
        for selection in selections:
            region = LundBrowderEngine._resolve_region(selection.region)
            LundBrowderEngine._check_covered(region, table)
            fraction = LundBrowderEngine._check_fraction(selection.fraction)
            if selection.depth is not None and not isinstance(selection.depth, BurnDepth):
                raise InvalidInputError(f"Invalid burn depth: {selection.depth}")
            resolved.append(RegionSelection(region=region, fraction=fraction, depth=selection.depth))
        return resolved

    @staticmethod
    def calculate_tbsa(age_months: float,
                       selections: Iterable[RegionSelection],
                       table: RegionPercentageTable = LUND_BROWDER) -> TbsaResult:
        """
        MASTER CALCULATOR: % TBSA for one assessment.
        Logic: breakdown entries are rounded individually for display, but the
        total accumulates the unrounded products and is rounded once at the end.
        """
        resolved = LundBrowderEngine.validate_selections(selections, table)
        age_group = LundBrowderEngine.classify_age(age_months)

        breakdown: Dict[BodyRegion, float] = {region: 0.0 for region in table.regions()}
        depth_area: Dict[BurnDepth, float] = {}
        total = 0.0

        for selection in resolved:
            area = table.percent(selection.region, age_group) * selection.fraction
            breakdown[selection.region] = round1(area)
            total += area
            if selection.depth is not None and area > 0:
                depth_area[selection.depth] = depth_area.get(selection.depth, 0.0) + area

        tbsa_pct = round1(total)
        warnings = LundBrowderEngine._clinical_warnings(tbsa_pct, age_group, depth_area)

        logger.debug("TBSA %.1f%% (age group %s, %d selections)",
                     tbsa_pct, age_group.value, len(resolved))

        return TbsaResult(
            tbsa_pct=tbsa_pct,
            breakdown=breakdown,
            age_group=age_group,
            warnings=warnings,
            depth_totals={depth: round1(area) for depth, area in depth_area.items()},
        )

    @staticmethod
    def _clinical_warnings(tbsa_pct: float, age_group: AgeGroup,
                           depth_area: Dict[BurnDepth, float]) -> List[str]:
        """Advisories only. The numeric result stands regardless."""
        warnings = []
        if tbsa_pct > CLINICAL_WARNING_THRESHOLDS.MAJOR_BURN_TBSA_PCT:
            warnings.append(
                f"Major burn ({tbsa_pct:g}% TBSA > {CLINICAL_WARNING_THRESHOLDS.MAJOR_BURN_TBSA_PCT:g}%): "
                "requires burn center care"
            )
        if age_group == AgeGroup.INFANT and tbsa_pct > 0:
            warnings.append("Infant patient: use pediatric burn protocols and weight-based targets")
        if depth_area.get(BurnDepth.FULL_THICKNESS, 0.0) > 0:
            warnings.append("Full thickness burn present: refer to burn center for grafting assessment")
        return warnings

    # --- Chart Lookups ---

    @staticmethod
    def get_region_percent(region, age_group: AgeGroup,
                           table: RegionPercentageTable = LUND_BROWDER) -> float:
        region = LundBrowderEngine._resolve_region(region)
        return table.percent(LundBrowderEngine._check_covered(region, table), age_group)

    @staticmethod
    def get_all_region_percents(age_group: AgeGroup,
                                table: RegionPercentageTable = LUND_BROWDER) -> Dict[BodyRegion, float]:
        return table.column(age_group)

    @staticmethod
    def validate_chart(table: RegionPercentageTable = LUND_BROWDER) -> ChartValidation:
        """
        Reference-data self check: column sums, head/limb progression with age,
        and bilateral symmetry. Returns every violation, not just the first.
        """
        errors = []
        missing = [region for region in BodyRegion if region not in table.percentages]
        if missing:
            errors.append(f"Chart is missing region(s): {', '.join(r.value for r in missing)}")

        totals = {}
        for group in AGE_GROUP_ORDER:
            total = table.column_total(group)
            totals[group] = round1(total)
            if abs(total - 100.0) > CHART_SUM_TOLERANCE:
                errors.append(f"Age group {group.value}: total is {total:g}%, should be ~100%")

        def progression(region: BodyRegion):
            return [table.percent(region, group) for group in AGE_GROUP_ORDER]

        if BodyRegion.HEAD not in missing:
            head = progression(BodyRegion.HEAD)
            if any(later >= earlier for earlier, later in zip(head, head[1:])):
                errors.append(f"Head percentage must strictly decrease with age: {head}")
        if BodyRegion.R_THIGH not in missing:
            thigh = progression(BodyRegion.R_THIGH)
            if any(later <= earlier for earlier, later in zip(thigh, thigh[1:])):
                errors.append(f"Thigh percentage must strictly increase with age: {thigh}")
        if BodyRegion.R_LEG not in missing:
            leg = progression(BodyRegion.R_LEG)
            if any(later < earlier for earlier, later in zip(leg, leg[1:])):
                errors.append(f"Leg percentage must not decrease with age: {leg}")

        for right, left in BILATERAL_PAIRS:
            if right in missing or left in missing:
                continue
            for group in AGE_GROUP_ORDER:
                if table.percent(right, group) != table.percent(left, group):
                    errors.append(
                        f"Bilateral asymmetry: {right.value} and {left.value} differ at age {group.value}"
                    )

        return ChartValidation(valid=not errors, column_totals=totals, errors=errors)


classify_age = LundBrowderEngine.classify_age
calculate_tbsa = LundBrowderEngine.calculate_tbsa
