"""
BurnFlow: Input Validator
=========================
Form-level validation. Unlike the engines (which raise on the first bad
value), this collects every problem into a ValidationResult so a UI can show
them together, and attaches clinical advisories that never block.
"""

import logging
from dataclasses import fields
from typing import Iterable, List, Optional, Union

from constants import (
    CLINICAL_WARNING_THRESHOLDS,
    PARKLAND_CONSTANTS,
)
from models import (
    AuditLog,
    BurnCalculationError,
    DataTypeError,
    InvalidInputError,
    OutOfRangeError,
    PatientAttributes,
    RegionSelection,
    SpecialSites,
    ValidationResult,
    VitalSigns,
    require_in_range,
)
from tbsa import LundBrowderEngine

logger = logging.getLogger("burnflow-engine")

# Physiological plausibility, not clinical targets
VITAL_LIMITS = {
    "heart_rate": (0, 300),
    "systolic_bp": (0, 300),
    "diastolic_bp": (0, 250),
    "sp_o2_percent": (0, 100),
}

# Mechanisms where surface area understates the injury
HIGH_RISK_MECHANISMS = {
    "electrical": "Electrical injury: TBSA underestimates deep tissue damage; Parkland may under-resuscitate",
    "chemical": "Chemical injury: irrigate thoroughly before assessment; depth often progresses",
    "inhalation": "Suspected inhalation injury: fluid requirements commonly exceed Parkland estimate",
}


class InputValidator:

    @staticmethod
    def _build_patient(data: dict) -> PatientAttributes:
        missing = [name for name in ("age_months", "weight_kg", "hours_since_injury") if name not in data]
        if missing:
            raise InvalidInputError(f"Missing required field(s): {', '.join(missing)}")

        sites = data.get("special_sites") or SpecialSites()
        if isinstance(sites, dict):
            known = {f.name for f in fields(SpecialSites)}
            unknown = set(sites) - known
            if unknown:
                raise DataTypeError(f"Unknown special site(s): {', '.join(sorted(unknown))}")
            sites = SpecialSites(**sites)

        return PatientAttributes(
            age_months=data["age_months"],
            weight_kg=data["weight_kg"],
            hours_since_injury=data["hours_since_injury"],
            mechanism=data.get("mechanism"),
            special_sites=sites,
        )

    @staticmethod
    def _patient_warnings(patient: PatientAttributes) -> List[str]:
        warnings = []

        if patient.age_months < CLINICAL_WARNING_THRESHOLDS.INFANT_AGE_MONTHS:
            warnings.append("Infant patient: use pediatric burn protocols and weight-based targets")

        if patient.hours_since_injury > CLINICAL_WARNING_THRESHOLDS.DELAYED_PRESENTATION_HOURS:
            warnings.append(
                f"Delayed presentation ({patient.hours_since_injury:g} h after injury): "
                "Parkland resuscitation window has closed"
            )
        elif patient.hours_since_injury >= PARKLAND_CONSTANTS.FIRST_PHASE_HOURS:
            warnings.append("Presenting after the first 8 hours: confirm volume already given")

        # Rough weight-for-age plausibility (catches lb entered as kg and vice versa)
        if patient.age_months < 12 and patient.weight_kg > 15:
            warnings.append(f"Weight {patient.weight_kg:g} kg is high for an infant: check units")
        elif patient.age_months >= 216 and patient.weight_kg < 30:
            warnings.append(f"Weight {patient.weight_kg:g} kg is low for an adult: check units")

        sites = patient.special_sites.involved()
        if sites:
            warnings.append(f"Burns involving {', '.join(sites)}: burn center referral criteria met regardless of TBSA")

        if patient.mechanism:
            advisory = HIGH_RISK_MECHANISMS.get(patient.mechanism.strip().lower())
            if advisory:
                warnings.append(advisory)

        return warnings

    @staticmethod
    def _selection_errors(selections: Iterable[Union[RegionSelection, dict]]) -> List[str]:
        errors = []
        seen = set()
        for raw in selections:
            if not isinstance(raw, (RegionSelection, dict)):
                errors.append(f"Invalid selection: {raw!r}")
                continue
            try:
                selection = raw if isinstance(raw, RegionSelection) else RegionSelection.from_dict(raw)
                resolved = LundBrowderEngine.validate_selections([selection])[0]
            except KeyError as e:
                errors.append(f"Selection missing field: {e.args[0]}")
                continue
            except (BurnCalculationError, DataTypeError) as e:
                errors.append(str(e))
                continue
            except ValueError:
                # BurnDepth(...) lookup on an unknown depth name
                errors.append(f"Invalid burn depth: {raw.get('depth')}")
                continue

            if resolved.region in seen:
                errors.append(f"Duplicate region: {resolved.region.value}")
            seen.add(resolved.region)
        return errors

    @staticmethod
    def _vital_errors(vitals: Union[VitalSigns, dict]) -> List[str]:
        if isinstance(vitals, dict):
            values = vitals
        else:
            values = {f.name: getattr(vitals, f.name) for f in fields(VitalSigns)}

        errors = []
        for name, (low, high) in VITAL_LIMITS.items():
            value = values.get(name)
            if value is None:
                continue
            try:
                require_in_range(name, value, low, high)
            except (OutOfRangeError, InvalidInputError, DataTypeError) as e:
                errors.append(str(e))

        systolic, diastolic = values.get("systolic_bp"), values.get("diastolic_bp")
        if not errors and systolic is not None and diastolic is not None and diastolic >= systolic:
            errors.append("Diastolic BP must be less than Systolic BP")
        return errors

    @staticmethod
    def validate_assessment(data: dict,
                            selections: Iterable[Union[RegionSelection, dict]] = (),
                            vitals: Optional[Union[VitalSigns, dict]] = None) -> ValidationResult:
        """
        SAFE FACTORY: the entry point for forms and the API.
        Returns a tagged result; range/shape problems become `errors`,
        clinical advisories become `warnings`.
        """
        errors = []
        warnings = []
        patient = None

        try:
            patient = InputValidator._build_patient(data)
            warnings.extend(InputValidator._patient_warnings(patient))
        except (BurnCalculationError, DataTypeError) as e:
            errors.append(str(e))

        errors.extend(InputValidator._selection_errors(selections))
        if vitals is not None:
            errors.extend(InputValidator._vital_errors(vitals))

        if errors:
            logger.debug("Assessment rejected: %s", "; ".join(errors))
            return ValidationResult(
                success=False,
                patient=None,
                errors=errors,
                warnings=warnings,
                audit_log=None,
            )

        return ValidationResult(
            success=True,
            patient=patient,
            errors=[],
            warnings=warnings,
            audit_log=AuditLog(inputs_hash=hash(str(data))),
        )


validate_assessment = InputValidator.validate_assessment
