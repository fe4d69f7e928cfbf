# batch_scaler/fleet/submitter.py
import asyncio
import logging
import random
import string
import time
from typing import Any, Dict, Optional

from .exceptions import SubmitError
from .models import ProvisionRequest

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

# Slack on top of the client's connect + read timeouts before giving up on the call
SUBMIT_GRACE_SECONDS = 5.0


def generate_job_name(prefix: str) -> str:
    """Time-based job name with a random suffix, e.g. ``video-worker-1718000000000-k3x9a``."""
    suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=5))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


class JobSubmitter:
    """Submits one Batch job per unit of added worker capacity.

    Every worker runs in batch mode and exits by itself once the queue
    has been idle for ``idle_timeout_seconds``.

    SubmitJob creates a new job on every request, so ``client`` must be built
    without retries (``create_batch_client(..., max_attempts=1)``) and
    ``timeout`` must match its connect/read timeout. The call is awaited
    past that budget, so a reported failure means no request is still running.
    """

    def __init__(
        self,
        client: Any,
        job_queue: str,
        job_definition: str,
        worker_timeout_minutes: int = 30,
        idle_timeout_seconds: int = 60,
        asset_url_prefix: str = "",
        job_name_prefix: str = "video-worker",
        tags: Optional[Dict[str, str]] = None,
        timeout: float = 15.0,
    ):
        self.client = client
        self.job_queue = job_queue
        self.job_definition = job_definition
        self.worker_timeout_minutes = worker_timeout_minutes
        self.idle_timeout_seconds = idle_timeout_seconds
        self.asset_url_prefix = asset_url_prefix
        self.job_name_prefix = job_name_prefix
        self.tags = tags or {}
        self.timeout = timeout
        self.call_timeout = 2 * timeout + SUBMIT_GRACE_SECONDS

    def build_request(self, concurrency_hint: int, queue_depth: int) -> ProvisionRequest:
        return ProvisionRequest(
            job_name=generate_job_name(self.job_name_prefix),
            concurrency_hint=concurrency_hint,
            environment_overrides={
                "WORKER_CONCURRENCY": str(concurrency_hint),
                "BATCH_MODE": "true",
                "AUTO_EXIT_WHEN_IDLE": "true",
                "IDLE_TIMEOUT_SECONDS": str(self.idle_timeout_seconds),
                # workers build public video/thumbnail links from this
                "CLOUDFRONT_URL": self.asset_url_prefix or "",
            },
            tags={
                **self.tags,
                "queue-depth": str(queue_depth),
            },
            timeout_seconds=self.worker_timeout_minutes * 60,
        )

    async def submit(self, concurrency_hint: int, queue_depth: int) -> Optional[str]:
        """Submit one worker job. Returns its job ID, or None if the call failed."""
        request = self.build_request(concurrency_hint, queue_depth)
        try:
            job_id = await self._submit_job(request)
        except SubmitError as e:
            logger.error(f"Failed to submit Batch job {request.job_name}: {str(e)}")
            return None

        logger.info(f"Submitted Batch job: {request.job_name} (ID: {job_id})")
        return job_id

    async def _submit_job(self, request: ProvisionRequest) -> str:
        kwargs = request.to_submit_kwargs(self.job_queue, self.job_definition)
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self.client.submit_job, **kwargs),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SubmitError(f"timed out after {self.call_timeout}s") from e
        except Exception as e:
            raise SubmitError(str(e)) from e

        job_id = response.get("jobId")
        if not job_id:
            raise SubmitError("response did not contain a jobId")
        return job_id
