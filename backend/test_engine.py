import math
import unittest

from constants import (
    AGE_GROUP_ORDER,
    LUND_BROWDER,
    VALID_BURN_FRACTIONS,
    AgeGroup,
    BodyRegion,
    BurnDepth,
    FluidPhase,
    RegionPercentageTable,
    round1,
)
from models import InvalidInputError, RegionSelection
from tbsa import LundBrowderEngine, calculate_tbsa, classify_age
from fluids import ParklandEngine, calculate_fluids


class TestAgeClassifier(unittest.TestCase):

    def test_01_boundaries_are_exact(self):
        """[AGE] Completed years decide the column: 11m -> '0', 12m -> '1'."""
        cases = {
            0: AgeGroup.INFANT, 11: AgeGroup.INFANT,
            12: AgeGroup.TODDLER, 59: AgeGroup.TODDLER,
            60: AgeGroup.CHILD, 119: AgeGroup.CHILD,
            120: AgeGroup.ADOLESCENT, 179: AgeGroup.ADOLESCENT,
            180: AgeGroup.TEEN, 215: AgeGroup.TEEN,
            216: AgeGroup.ADULT, 1200: AgeGroup.ADULT,
        }
        for months, expected in cases.items():
            self.assertEqual(classify_age(months), expected, f"{months} months")

    def test_02_monotonic_over_domain(self):
        """[AGE] Older never maps to a younger column."""
        previous = 0
        for months in range(0, 1200):
            index = AGE_GROUP_ORDER.index(classify_age(months))
            self.assertGreaterEqual(index, previous)
            previous = index

    def test_03_fractional_months(self):
        self.assertEqual(classify_age(11.9), AgeGroup.INFANT)
        self.assertEqual(classify_age(12.0), AgeGroup.TODDLER)


class TestRegionTable(unittest.TestCase):

    def test_01_chart_is_clinically_consistent(self):
        """[CHART] Sums, progression and bilateral symmetry all hold."""
        report = LundBrowderEngine.validate_chart()
        self.assertTrue(report.valid, report.errors)

    def test_02_every_column_sums_to_100(self):
        self.assertEqual(len(LUND_BROWDER.regions()), 19)
        for group in AGE_GROUP_ORDER:
            self.assertLessEqual(abs(LUND_BROWDER.column_total(group) - 100.0), 1.0, group)

    def test_03_head_shrinks_as_thigh_grows(self):
        head = [LUND_BROWDER.percent(BodyRegion.HEAD, g) for g in AGE_GROUP_ORDER]
        thigh = [LUND_BROWDER.percent(BodyRegion.L_THIGH, g) for g in AGE_GROUP_ORDER]
        self.assertEqual(head, [19, 17, 13, 11, 9, 7])
        self.assertEqual(thigh, [5.5, 6.5, 8, 8.5, 9, 9.5])

    def test_04_table_is_read_only(self):
        with self.assertRaises(TypeError):
            LUND_BROWDER.percentages[BodyRegion.HEAD][AgeGroup.ADULT] = 50

    def test_05_broken_chart_is_reported(self):
        """[CHART] A flat head column breaks both the sum and the progression rule."""
        rows = {r: tuple(LUND_BROWDER.percent(r, g) for g in AGE_GROUP_ORDER)
                for r in LUND_BROWDER.regions()}
        rows[BodyRegion.HEAD] = (7, 7, 7, 7, 7, 7)
        report = LundBrowderEngine.validate_chart(RegionPercentageTable.from_rows("flat head", rows))

        self.assertFalse(report.valid)
        self.assertTrue(any("Head percentage" in e for e in report.errors))
        self.assertTrue(any("Age group 0" in e for e in report.errors))

    def test_06_region_lookups(self):
        self.assertEqual(LundBrowderEngine.get_region_percent("R_Thigh", AgeGroup.CHILD), 8)
        column = LundBrowderEngine.get_all_region_percents(AgeGroup.INFANT)
        self.assertEqual(column[BodyRegion.HEAD], 19)
        self.assertEqual(len(column), 19)


class TestTbsaAggregator(unittest.TestCase):

    def test_01_no_selections(self):
        result = calculate_tbsa(300, [])
        self.assertEqual(result.tbsa_pct, 0)
        self.assertEqual(len(result.breakdown), 19)
        self.assertTrue(all(v == 0 for v in result.breakdown.values()))
        self.assertEqual(result.warnings, [])

    def test_02_adult_head(self):
        """[TBSA] 25-year-old, whole head -> 7%."""
        result = calculate_tbsa(300, [RegionSelection("Head", 1)])
        self.assertEqual(result.age_group, AgeGroup.ADULT)
        self.assertEqual(result.tbsa_pct, 7.0)
        self.assertEqual(result.breakdown[BodyRegion.HEAD], 7.0)

    def test_03_single_region_scaling(self):
        """[TBSA] One region: total == base x fraction, for every region and fraction."""
        for group_months in (6, 24, 72, 144, 190, 400):
            group = classify_age(group_months)
            for region in BodyRegion:
                for fraction in VALID_BURN_FRACTIONS:
                    result = calculate_tbsa(group_months, [RegionSelection(region, fraction)])
                    expected = round1(LUND_BROWDER.percent(region, group) * fraction)
                    self.assertEqual(result.tbsa_pct, expected, (region, fraction, group))

    def test_04_deterministic(self):
        selections = [RegionSelection(BodyRegion.ANT_TRUNK, 0.5),
                      RegionSelection(BodyRegion.R_U_ARM, 0.75, BurnDepth.DEEP_PARTIAL)]
        self.assertEqual(calculate_tbsa(40, selections), calculate_tbsa(40, selections))

    def test_05_breakdown_rounds_half_up(self):
        """[ROUNDING] 5.5 x 0.5 = 2.75 shows as 2.8; total keeps full precision."""
        result = calculate_tbsa(8, [
            RegionSelection("Post_Trunk", 0.75),
            RegionSelection("R_Thigh", 1),
            RegionSelection("L_Thigh", 0.5),
        ])
        self.assertEqual(result.breakdown[BodyRegion.L_THIGH], 2.8)
        self.assertEqual(result.breakdown[BodyRegion.POST_TRUNK], 9.8)
        self.assertEqual(result.tbsa_pct, 18.0)  # 9.75 + 5.5 + 2.75

    def test_06_whole_body_is_100(self):
        for months in (0, 30, 80, 130, 200, 500):
            result = calculate_tbsa(months, [RegionSelection(r, 1) for r in BodyRegion])
            self.assertAlmostEqual(result.tbsa_pct, 100.0, delta=1.0)
            self.assertTrue(any("Major burn" in w for w in result.warnings))

    def test_07_warnings_do_not_change_numbers(self):
        result = calculate_tbsa(6, [RegionSelection("Head", 1)])
        self.assertEqual(result.tbsa_pct, 19.0)
        self.assertTrue(any("Infant" in w for w in result.warnings))

    def test_08_depth_totals(self):
        result = calculate_tbsa(300, [
            RegionSelection("Ant_Trunk", 1, BurnDepth.SUPERFICIAL_PARTIAL),
            RegionSelection("R_U_Arm", 0.5, BurnDepth.FULL_THICKNESS),
            RegionSelection("L_U_Arm", 0.5, BurnDepth.FULL_THICKNESS),
            RegionSelection("Neck", 1),
        ])
        self.assertEqual(result.tbsa_pct, 19.0)
        self.assertEqual(result.depth_totals[BurnDepth.SUPERFICIAL_PARTIAL], 13.0)
        self.assertEqual(result.depth_totals[BurnDepth.FULL_THICKNESS], 4.0)
        self.assertTrue(any("Full thickness" in w for w in result.warnings))

    def test_09_alternate_chart_injection(self):
        """[CHART] The engine reads whatever table it is given."""
        rows = {r: tuple(LUND_BROWDER.percent(r, g) for g in AGE_GROUP_ORDER)
                for r in LUND_BROWDER.regions()}
        rows[BodyRegion.HEAD] = (20, 20, 20, 20, 20, 20)
        custom = RegionPercentageTable.from_rows("custom", rows)

        result = calculate_tbsa(300, [RegionSelection("Head", 0.5)], table=custom)
        self.assertEqual(result.tbsa_pct, 10.0)
        # Default chart untouched
        self.assertEqual(calculate_tbsa(300, [RegionSelection("Head", 0.5)]).tbsa_pct, 3.5)

    def test_10_partial_chart_rejects_uncovered_region(self):
        """[CHART] A chart without Genitalia names the region instead of failing on lookup."""
        rows = {r: tuple(LUND_BROWDER.percent(r, g) for g in AGE_GROUP_ORDER)
                for r in LUND_BROWDER.regions() if r != BodyRegion.GENITALIA}
        partial = RegionPercentageTable.from_rows("no genitalia", rows)

        with self.assertRaises(InvalidInputError) as ctx:
            calculate_tbsa(300, [RegionSelection("Genitalia", 1)], table=partial)
        self.assertIn("Invalid region: Genitalia", str(ctx.exception))
        with self.assertRaises(InvalidInputError):
            LundBrowderEngine.get_region_percent("Genitalia", AgeGroup.ADULT, table=partial)

        # Covered regions still calculate
        self.assertEqual(calculate_tbsa(300, [RegionSelection("Neck", 1)], table=partial).tbsa_pct, 2.0)

        report = LundBrowderEngine.validate_chart(partial)
        self.assertFalse(report.valid)
        self.assertIn("Chart is missing region(s): Genitalia", report.errors)

    def test_11_duplicate_regions_are_not_merged(self):
        """[TBSA] Every selection adds to the total; the breakdown keeps the last entry."""
        result = calculate_tbsa(300, [RegionSelection("Head", 1), RegionSelection("Head", 0.5)])
        self.assertEqual(result.tbsa_pct, 10.5)
        self.assertEqual(result.breakdown[BodyRegion.HEAD], 3.5)
        self.assertNotEqual(sum(result.breakdown.values()), result.tbsa_pct)


class TestParklandEngine(unittest.TestCase):

    def test_01_infant_example(self):
        """[PARKLAND] 8 kg, 12%, 2 h after injury."""
        plan = calculate_fluids(8, 12, 2)
        self.assertEqual(plan.total_ml, 384.0)
        self.assertEqual(plan.first_8h_ml, 192.0)
        self.assertEqual(plan.next_16h_ml, 192.0)
        self.assertEqual(plan.delivered_first_8h_ml, 48.0)
        self.assertEqual(plan.remaining_first_8h_ml, 144.0)
        self.assertEqual(plan.rate_now_ml_per_hr, 24.0)
        self.assertEqual(plan.maintenance.ml_per_hr, 32.0)
        self.assertEqual(plan.maintenance.method, "4-2-1")

    def test_02_adult_at_injury(self):
        plan = calculate_fluids(70, 30, 0)
        self.assertEqual(plan.total_ml, 8400.0)
        self.assertEqual(plan.first_8h_ml, 4200.0)
        self.assertEqual(plan.rate_now_ml_per_hr, 525.0)
        self.assertEqual(plan.phase, FluidPhase.FIRST_8H)

    def test_03_total_invariant_under_time(self):
        totals = {calculate_fluids(20, 20, h).total_ml for h in (0, 2.5, 4, 8, 12, 23.9, 24, 30, 100)}
        self.assertEqual(totals, {1600.0})

    def test_04_phase_continuity_at_8h(self):
        plan = calculate_fluids(20, 20, 8)
        self.assertEqual(plan.phase, FluidPhase.NEXT_16H)
        self.assertEqual(plan.remaining_first_8h_ml, 0)
        self.assertEqual(plan.delivered_first_8h_ml, 800.0)
        self.assertEqual(plan.remaining_next_16h_ml, 800.0)
        self.assertEqual(plan.rate_now_ml_per_hr, 50.0)

    def test_05_second_phase_progress(self):
        plan = calculate_fluids(60, 20, 10)
        self.assertEqual(plan.total_ml, 4800.0)
        self.assertEqual(plan.phase, FluidPhase.NEXT_16H)
        self.assertEqual(plan.delivered_first_8h_ml, 2400.0)
        self.assertEqual(plan.delivered_next_16h_ml, 300.0)
        self.assertEqual(plan.remaining_next_16h_ml, 2100.0)
        self.assertEqual(plan.rate_now_ml_per_hr, 150.0)
        self.assertEqual(plan.maintenance.ml_per_hr, 100.0)

    def test_06_end_of_window(self):
        """[PARKLAND] h = 24 and h > 24: nothing left, rate 0, still 'next16'."""
        for hours in (24, 30, 168):
            plan = calculate_fluids(20, 20, hours)
            self.assertEqual(plan.rate_now_ml_per_hr, 0)
            self.assertEqual(plan.remaining_first_8h_ml, 0)
            self.assertEqual(plan.remaining_next_16h_ml, 0)
            self.assertEqual(plan.phase, FluidPhase.NEXT_16H)

    def test_07_timeline(self):
        plan = calculate_fluids(20, 20, 0)
        timeline = plan.timeline
        self.assertEqual(len(timeline), 25)
        self.assertEqual([p.hour_from_injury for p in timeline], list(range(25)))
        self.assertEqual(timeline[0].target_cumulative_ml, 0)
        self.assertEqual(timeline[4].target_cumulative_ml, 400.0)
        self.assertEqual(timeline[7].phase, FluidPhase.FIRST_8H)
        self.assertEqual(timeline[8].phase, FluidPhase.NEXT_16H)
        self.assertEqual(timeline[8].target_cumulative_ml, 800.0)
        self.assertEqual(timeline[16].target_cumulative_ml, 1200.0)
        self.assertEqual(timeline[24].target_cumulative_ml, 1600.0)
        targets = [p.target_cumulative_ml for p in timeline]
        self.assertEqual(targets, sorted(targets))

    def test_08_maintenance_4_2_1(self):
        """[MAINTENANCE] Tiers stack: 15 kg -> 10x4 + 5x2 = 50."""
        for weight, expected in ((0.5, 2.0), (5, 20.0), (10, 40.0), (15, 50.0),
                                 (20, 60.0), (25, 65.0), (50, 90.0), (70, 110.0)):
            self.assertEqual(ParklandEngine.calculate_maintenance(weight).ml_per_hr, expected, weight)

    def test_09_small_burn_notice(self):
        self.assertIn("10% TBSA", calculate_fluids(70, 8, 1).notice)
        self.assertIsNone(calculate_fluids(70, 15, 1).notice)
        # Advisory only: numbers are still produced
        self.assertEqual(calculate_fluids(70, 8, 0).total_ml, 2240.0)

    def test_10_rate_never_negative(self):
        for hours in [h / 2 for h in range(0, 100)]:
            plan = calculate_fluids(35, 42, hours)
            self.assertGreaterEqual(plan.rate_now_ml_per_hr, 0)
            self.assertFalse(math.isnan(plan.rate_now_ml_per_hr))

    def test_11_unit_conversion(self):
        self.assertEqual(ParklandEngine.convert_to_ml_per_kg_per_hr(525, 70), 7.5)


if __name__ == '__main__':
    unittest.main()
