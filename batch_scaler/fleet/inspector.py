# batch_scaler/fleet/inspector.py
import asyncio
import logging
from typing import Any, List

from .exceptions import InspectError
from .models import FleetCounts, JobDetail, JobStatus

logger = logging.getLogger(__name__)


class FleetInspector:
    """Read-only view of the Batch jobs in this service's job queue."""

    def __init__(self, client: Any, job_queue: str, timeout: float = 15.0):
        self.client = client
        self.job_queue = job_queue
        self.timeout = timeout

    async def inspect(self) -> FleetCounts:
        """Count running and runnable jobs. Returns zero counts on any backend error."""
        try:
            running, pending = await asyncio.gather(
                self._count_jobs(JobStatus.RUNNING),
                self._count_jobs(JobStatus.RUNNABLE),
            )
            return FleetCounts(running=running, pending=pending)
        except InspectError as e:
            logger.warning(f"Failed to get Batch job counts: {str(e)}")
            return FleetCounts.unavailable(str(e))

    async def _count_jobs(self, status: JobStatus) -> int:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._list_job_count, status),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise InspectError(
                f"listing {status.value} jobs timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            raise InspectError(f"listing {status.value} jobs failed: {e}") from e

    def _list_job_count(self, status: JobStatus) -> int:
        paginator = self.client.get_paginator("list_jobs")
        count = 0
        for page in paginator.paginate(jobQueue=self.job_queue, jobStatus=status.value):
            count += len(page.get("jobSummaryList") or [])
        return count

    async def describe_jobs(self, job_ids: List[str]) -> List[JobDetail]:
        """Fetch status details for specific jobs. Returns an empty list on error."""
        if not job_ids:
            return []

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self.client.describe_jobs, jobs=list(job_ids)),
                timeout=self.timeout,
            )
            return [JobDetail.from_batch(job) for job in response.get("jobs") or []]
        except Exception as e:
            logger.error(f"Failed to get job details: {str(e)}")
            return []
