# main.py

import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

# Import Data Models & Logic
from constants import (
    BURN_CENTER_TBSA_BY_DEPTH,
    VERSION,
    AgeGroup,
    BodyRegion,
    BurnDepth,
    FluidPhase,
    FluidType,
)
from models import (
    DataTypeError,
    RateAction,
    RegionSelection,
    VitalSigns,
)
from tbsa import LundBrowderEngine
from fluids import ParklandEngine
from safety import MonitoringSupervisor
from protocols import BurnCenterCriteria, ProtocolEngine
from validation import InputValidator

# --- 1. CONFIGURATION & LOGGING ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("burnflow-api")

app = FastAPI(
    title="BurnFlow API",
    version=VERSION,
    description="Lund-Browder TBSA and Parkland fluid resuscitation calculator. \n\n"
                "**WARNING**: Educational tool only. Not for direct patient care.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def read_root():
    return {"status": "active", "message": "BurnFlow API is running successfully!"}

@app.get("/health")
def health_check():
    return {"status": "active", "version": VERSION, "module": "burnflow-calculation-engine"}

# --- 2. INPUT SCHEMA (The Guardrails) ---
class SelectionRequest(BaseModel):
    # Plain strings: the engine names the offending value in its error
    region: str = Field(..., description="Lund-Browder region key, e.g. 'Head', 'R_Thigh'")
    fraction: float = Field(..., description="0, 0.25, 0.5, 0.75 or 1")
    depth: Optional[BurnDepth] = None

class TbsaRequest(BaseModel):
    age_months: float = Field(..., ge=0, le=1200, description="Age in months (0-100y)")
    selections: List[SelectionRequest] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "age_months": 30,
            "selections": [
                {"region": "Head", "fraction": 0.25},
                {"region": "Ant_Trunk", "fraction": 0.5, "depth": "superficial-partial"},
            ],
        }
    })

class FluidRequest(BaseModel):
    weight_kg: float = Field(..., gt=0, le=300.0, description="Weight in kg")
    tbsa_pct: float = Field(..., ge=0, le=100.0, description="% TBSA burned")
    hours_since_injury: float = Field(..., ge=0, le=168.0, description="Hours since INJURY (not arrival)")

class UrineOutputRequest(BaseModel):
    current_rate_ml_hr: float = Field(..., ge=0)
    urine_output_ml_hr: float = Field(..., ge=0)

class UrineTargetRequest(BaseModel):
    weight_kg: float = Field(..., gt=0, le=300.0)
    age_months: float = Field(..., ge=0, le=1200)

class VitalsRequest(BaseModel):
    heart_rate: Optional[float] = Field(None, ge=0, le=300)
    systolic_bp: Optional[float] = Field(None, ge=0, le=300)
    diastolic_bp: Optional[float] = Field(None, ge=0, le=250)
    sp_o2_percent: Optional[float] = Field(None, ge=0, le=100)

class AssessmentRequest(FluidRequest):
    age_months: float = Field(..., ge=0, le=1200)
    current_iv_rate_ml_hr: Optional[float] = Field(None, ge=0)
    urine_output_ml_hr: Optional[float] = Field(None, ge=0)
    vitals: Optional[VitalsRequest] = None
    can_tolerate_po: bool = False

class PatientValidationRequest(BaseModel):
    # Deliberately unconstrained: the validator reports every problem at once
    patient: dict
    selections: List[dict] = Field(default_factory=list)
    vitals: Optional[dict] = None

# --- 3. EXPLICIT RESPONSE SCHEMA (The Contract) ---
class _FromEngine(BaseModel):
    model_config = ConfigDict(from_attributes=True)

class TbsaResponse(_FromEngine):
    tbsa_pct: float
    breakdown: Dict[BodyRegion, float]
    age_group: AgeGroup
    warnings: List[str]
    depth_totals: Dict[BurnDepth, float]
    generated_at: datetime = Field(default_factory=datetime.now)

class TimelinePointResponse(_FromEngine):
    hour_from_injury: int
    target_cumulative_ml: float
    phase: FluidPhase

class MaintenanceResponse(_FromEngine):
    ml_per_hr: float
    method: str

class FluidPlanResponse(_FromEngine):
    total_ml: float
    first_8h_ml: float
    next_16h_ml: float
    delivered_first_8h_ml: float
    delivered_next_16h_ml: float
    remaining_first_8h_ml: float
    remaining_next_16h_ml: float
    rate_now_ml_per_hr: float
    phase: FluidPhase
    timeline: List[TimelinePointResponse]
    maintenance: MaintenanceResponse
    notice: Optional[str] = None
    generated_at: datetime = Field(default_factory=datetime.now)

class RateAdjustmentResponse(_FromEngine):
    new_rate_ml_per_hr: float
    adjustment: RateAction
    reason: str

class VitalStabilityResponse(_FromEngine):
    is_stable: bool
    unstable_reasons: List[str]
    recommendations: List[str]

class UrineTargetResponse(_FromEngine):
    min_ml_hr: float
    max_ml_hr: float
    method: str

class FluidRecommendationResponse(_FromEngine):
    fluid: FluidType
    primary_fluid: str
    route: str
    notes: List[str]

class AssessmentResponse(_FromEngine):
    parkland: FluidPlanResponse
    urine_output_target: UrineTargetResponse
    rate_adjustment: Optional[RateAdjustmentResponse]
    vital_stability: Optional[VitalStabilityResponse]
    fluid_recommendation: FluidRecommendationResponse
    needs_maintenance_fluid: bool
    protocol_recommendations: List[str]
    clinical_notes: List[str]

class BurnDepthResponse(BaseModel):
    depth: BurnDepth
    name: str
    description: str
    appearance: str
    sensation: str
    healing_time: str
    burn_center_tbsa_pct: Optional[float] = None

class ValidationResponse(BaseModel):
    success: bool
    errors: List[str]
    warnings: List[str]

# --- 4. ENDPOINTS ---

def _run_engine(label: str, func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except (ValueError, DataTypeError) as e:
        # Range/shape errors from the engine (e.g. "Invalid region: Foo")
        logger.warning(f"Clinical Validation Error ({label}): {str(e)}")
        raise HTTPException(status_code=422, detail=f"Clinical Validation Error: {str(e)}")
    except Exception as e:
        logger.error(f"Internal Engine Failure ({label}): {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Calculation Engine Error")

@app.get("/chart")
def get_chart(age_months: float = Query(..., ge=0, le=1200)):
    """Lund-Browder column for the patient's age group."""
    age_group = _run_engine("chart", LundBrowderEngine.classify_age, age_months)
    percents = LundBrowderEngine.get_all_region_percents(age_group)
    return {
        "age_group": age_group.value,
        "regions": {region.value: pct for region, pct in percents.items()},
    }

@app.get("/burn-depths/{depth}", response_model=BurnDepthResponse)
def get_burn_depth(depth: str):
    info = _run_engine("burn-depth", BurnCenterCriteria.describe_depth, depth)
    return {
        "depth": info.depth,
        "name": info.name,
        "description": info.description,
        "appearance": info.appearance,
        "sensation": info.sensation,
        "healing_time": info.healing_time,
        "burn_center_tbsa_pct": BURN_CENTER_TBSA_BY_DEPTH[info.depth],
    }

@app.post("/tbsa", response_model=TbsaResponse)
def calculate_tbsa(request: TbsaRequest):
    logger.info(f"TBSA request: Age {request.age_months}m, {len(request.selections)} regions")
    selections = [
        RegionSelection(region=s.region, fraction=s.fraction, depth=s.depth)
        for s in request.selections
    ]
    return _run_engine("tbsa", LundBrowderEngine.calculate_tbsa, request.age_months, selections)

@app.post("/fluids", response_model=FluidPlanResponse)
def calculate_fluids(request: FluidRequest):
    logger.info(f"Parkland request: Wt {request.weight_kg}kg, TBSA {request.tbsa_pct}%, "
                f"{request.hours_since_injury}h post-injury")
    return _run_engine("fluids", ParklandEngine.calculate_fluids,
                       request.weight_kg, request.tbsa_pct, request.hours_since_injury)

@app.post("/monitoring/urine-output", response_model=RateAdjustmentResponse)
def adjust_rate(request: UrineOutputRequest):
    return _run_engine("urine-output", MonitoringSupervisor.adjust_rate_by_urine_output,
                       request.current_rate_ml_hr, request.urine_output_ml_hr)

@app.post("/monitoring/vitals", response_model=VitalStabilityResponse)
def assess_vitals(request: VitalsRequest):
    return _run_engine("vitals", MonitoringSupervisor.assess_vital_stability,
                       VitalSigns(**request.model_dump()))

@app.post("/monitoring/urine-target", response_model=UrineTargetResponse)
def urine_target(request: UrineTargetRequest):
    return _run_engine("urine-target", MonitoringSupervisor.urine_output_target,
                       request.weight_kg, request.age_months)

@app.post("/assessment", response_model=AssessmentResponse)
def assess(request: AssessmentRequest):
    """
    Full bedside snapshot: Parkland plan, urine target, titration advice,
    vital stability and fluid choice in one call.
    """
    vitals = VitalSigns(**request.vitals.model_dump()) if request.vitals else None
    return _run_engine(
        "assessment", ProtocolEngine.assess_burn_fluid_management,
        weight_kg=request.weight_kg,
        tbsa_pct=request.tbsa_pct,
        age_months=request.age_months,
        hours_since_injury=request.hours_since_injury,
        current_iv_rate_ml_hr=request.current_iv_rate_ml_hr,
        urine_output_ml_hr=request.urine_output_ml_hr,
        vitals=vitals,
        can_tolerate_po=request.can_tolerate_po,
    )

@app.post("/validate/patient", response_model=ValidationResponse)
def validate_patient(request: PatientValidationRequest):
    result = InputValidator.validate_assessment(request.patient, request.selections, request.vitals)
    if not result.success:
        logger.info(f"Patient validation failed with {len(result.errors)} error(s)")
    return {"success": result.success, "errors": result.errors, "warnings": result.warnings}
