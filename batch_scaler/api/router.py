# batch_scaler/api/router.py
import logging
from fastapi import APIRouter, Body, Depends, Query, Request
from typing import List, Optional

from .models import (
    CheckResponse,
    ScalingStatusResponse,
    TriggerRequest,
    TriggerResponse,
)
from .exceptions import ScalingRequestError, ScalingUnavailableError
from batch_scaler.fleet.models import JobDetail
from batch_scaler.scaler.controller import BatchScalingController
from batch_scaler.scaler.exceptions import ScalingDisabledError
from batch_scaler.scaler.models import MetricsSnapshot

# Initialize logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter(prefix="/scaling", tags=["scaling"])


def get_controller(request: Request) -> BatchScalingController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise ScalingUnavailableError("Scaling controller is not initialized")
    return controller


@router.get("/metrics", response_model=MetricsSnapshot)
async def get_metrics(controller: BatchScalingController = Depends(get_controller)):
    """
    Current auto-scaling metrics, for dashboards and health checks
    """
    return controller.get_metrics()


@router.get("/status", response_model=ScalingStatusResponse)
async def get_status(controller: BatchScalingController = Depends(get_controller)):
    """
    Human-readable scaling status
    """
    return ScalingStatusResponse.from_metrics(controller.get_metrics())


@router.post("/trigger", response_model=TriggerResponse)
async def trigger_scale(
    trigger: Optional[TriggerRequest] = Body(default=None),
    controller: BatchScalingController = Depends(get_controller),
):
    """
    Manually launch Batch workers, bypassing threshold and cooldown
    """
    worker_count = trigger.worker_count if trigger else 1
    try:
        job_ids = await controller.manual_trigger(worker_count)
    except ScalingDisabledError as e:
        raise ScalingUnavailableError(str(e))
    except Exception as e:
        logger.exception("Unexpected error triggering scale-up")
        raise ScalingRequestError(f"Failed to trigger scale-up: {str(e)}")

    return TriggerResponse(
        message=f"Triggered {len(job_ids)} AWS Batch worker(s)",
        job_ids=job_ids,
    )


@router.post("/check", response_model=CheckResponse)
async def force_check(controller: BatchScalingController = Depends(get_controller)):
    """
    Run a queue check and scaling decision now instead of waiting for the next tick
    """
    try:
        metrics = await controller.check()
    except ScalingDisabledError as e:
        raise ScalingUnavailableError(str(e))
    except Exception as e:
        logger.exception("Unexpected error during forced check")
        raise ScalingRequestError(f"Failed to check queue: {str(e)}")

    return CheckResponse(
        message="Queue checked and scaling decision made",
        metrics=metrics,
    )


@router.get("/jobs", response_model=List[JobDetail])
async def get_job_details(
    job_ids: List[str] = Query(default=[], description="Batch job IDs to describe"),
    controller: BatchScalingController = Depends(get_controller),
):
    """
    Status details for specific Batch jobs
    """
    return await controller.describe_jobs(job_ids)
