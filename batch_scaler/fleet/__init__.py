"""Compute fleet module for the batch scaling service.

This module lists, describes and submits AWS Batch worker jobs.
"""

from .client import create_batch_client, close_batch_client
from .inspector import FleetInspector
from .submitter import JobSubmitter, generate_job_name
from .models import FleetCounts, JobDetail, JobStatus, ProvisionRequest
from .exceptions import FleetError, InspectError, SubmitError

__all__ = [
    "create_batch_client",
    "close_batch_client",
    "FleetInspector",
    "JobSubmitter",
    "generate_job_name",
    "FleetCounts",
    "JobDetail",
    "JobStatus",
    "ProvisionRequest",
    "FleetError",
    "InspectError",
    "SubmitError",
]
