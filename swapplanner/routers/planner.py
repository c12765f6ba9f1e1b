import logging

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from swapplanner.core.config import settings
from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.constraints import ConstraintValidationResult
from swapplanner.schemas.optimization import OptimizationResult
from swapplanner.schemas.overlap import OverlapAnalysis
from swapplanner.schemas.report import PlanningReport, PlanRequest
from swapplanner.schemas.substitution import SubstitutionAnalysis
from swapplanner.schemas.timing import TimingAnalysis
from swapplanner.services.planner_service import PlannerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/planner", tags=["Swap Planner"])


def _service(request: PlanRequest) -> PlannerService:
    return PlannerService(request.config or settings.planner_config())


@router.get("/config", response_model=PlannerConfig, response_model_by_alias=True)
async def get_default_config():
    """
    Returns the planner configuration used when a request carries none.
    """
    return settings.planner_config()


@router.post("/optimize", response_model=OptimizationResult, response_model_by_alias=True)
async def optimize(request: PlanRequest):
    """
    Slot assignment plus the manual swap schedule, each swap with its timing window.
    """
    logger.info(f"Optimization requested for {request.profile.file_name or 'unnamed profile'}")
    return await run_in_threadpool(_service(request).optimize, request.profile)


@router.post("/timing", response_model=dict[str, TimingAnalysis], response_model_by_alias=True)
async def analyze_timing(request: PlanRequest):
    return await run_in_threadpool(_service(request).analyze_timing, request.profile)


@router.post("/constraints", response_model=ConstraintValidationResult, response_model_by_alias=True)
async def validate_constraints(request: PlanRequest):
    """
    Flags layers that need more simultaneous colors than there are slots.
    An infeasible print is still a 200 response: violations are data.
    """
    return await run_in_threadpool(_service(request).validate_constraints, request.profile)


@router.post("/substitutions", response_model=SubstitutionAnalysis, response_model_by_alias=True)
async def find_substitutions(request: PlanRequest):
    return await run_in_threadpool(_service(request).find_substitutions, request.profile)


@router.post("/overlaps", response_model=OverlapAnalysis, response_model_by_alias=True)
async def analyze_overlaps(request: PlanRequest):
    return await run_in_threadpool(_service(request).analyze_overlaps, request.profile)


@router.post("/plan", response_model=PlanningReport, response_model_by_alias=True)
async def plan(request: PlanRequest):
    """
    Runs every planner pass and returns the bundled report.
    """
    return await run_in_threadpool(_service(request).plan, request.profile)


@router.post("/instructions", response_class=PlainTextResponse)
async def instructions(request: PlanRequest):
    """
    Plain-text operator instructions, ready to print next to the machine.
    """
    return await run_in_threadpool(_service(request).generate_instructions, request.profile)
