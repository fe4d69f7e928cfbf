# batch_scaler/fleet/models.py
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    PENDING = "PENDING"
    RUNNABLE = "RUNNABLE"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class FleetCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    running: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return self.running + self.pending

    @classmethod
    def unavailable(cls, error: str) -> "FleetCounts":
        return cls(running=0, pending=0, error=error)


class ProvisionRequest(BaseModel):
    """One unit of added capacity, as sent to AWS Batch SubmitJob."""

    model_config = ConfigDict(frozen=True)

    job_name: str
    concurrency_hint: int = Field(gt=0)
    environment_overrides: Dict[str, str] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)
    timeout_seconds: int = Field(gt=0)

    def to_submit_kwargs(self, job_queue: str, job_definition: str) -> Dict[str, Any]:
        """Render keyword arguments for the boto3 ``submit_job`` call."""
        return {
            "jobName": self.job_name,
            "jobQueue": job_queue,
            "jobDefinition": job_definition,
            "containerOverrides": {
                "environment": [
                    {"name": name, "value": value}
                    for name, value in self.environment_overrides.items()
                ],
            },
            "timeout": {"attemptDurationSeconds": self.timeout_seconds},
            "tags": dict(self.tags),
        }


def _from_epoch_ms(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class JobDetail(BaseModel):
    job_id: str
    job_name: Optional[str] = None
    status: Optional[str] = None
    status_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    exit_code: Optional[int] = None
    container_reason: Optional[str] = None
    vcpus: Optional[int] = None
    memory: Optional[int] = None

    @classmethod
    def from_batch(cls, job: Dict[str, Any]) -> "JobDetail":
        """Build from one entry of a DescribeJobs response."""
        container = job.get("container") or {}
        return cls(
            job_id=job["jobId"],
            job_name=job.get("jobName"),
            status=job.get("status"),
            status_reason=job.get("statusReason"),
            created_at=_from_epoch_ms(job.get("createdAt")),
            started_at=_from_epoch_ms(job.get("startedAt")),
            stopped_at=_from_epoch_ms(job.get("stoppedAt")),
            exit_code=container.get("exitCode"),
            container_reason=container.get("reason"),
            vcpus=container.get("vcpus"),
            memory=container.get("memory"),
        )
