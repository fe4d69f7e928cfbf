# batch_scaler/api/models.py

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from batch_scaler.scaler.models import MetricsSnapshot


class TriggerRequest(BaseModel):
    worker_count: int = Field(default=1, ge=1)


class TriggerResponse(BaseModel):
    success: bool = True
    message: str
    job_ids: List[str] = Field(default_factory=list)


class CheckResponse(BaseModel):
    success: bool = True
    message: str
    metrics: MetricsSnapshot


class AutoScalingStatus(BaseModel):
    enabled: bool
    provider: str = "AWS Batch"


class QueueStatus(BaseModel):
    depth: int
    consumers: int
    last_checked: Optional[datetime] = None


class WorkerStatus(BaseModel):
    batch_running: int
    batch_pending: int
    total_active: int


class HistoryStatus(BaseModel):
    total_jobs_submitted: int
    last_action: str
    last_action_at: Optional[datetime] = None


class ScalingStatusResponse(BaseModel):
    success: bool = True
    auto_scaling: AutoScalingStatus
    queue: QueueStatus
    workers: WorkerStatus
    history: HistoryStatus

    @classmethod
    def from_metrics(cls, metrics: MetricsSnapshot) -> "ScalingStatusResponse":
        return cls(
            auto_scaling=AutoScalingStatus(enabled=metrics.enabled),
            queue=QueueStatus(
                depth=metrics.queue_depth,
                consumers=metrics.consumer_count,
                last_checked=metrics.last_checked_at,
            ),
            workers=WorkerStatus(
                batch_running=metrics.batch_jobs_running,
                batch_pending=metrics.batch_jobs_pending,
                total_active=metrics.active_workers,
            ),
            history=HistoryStatus(
                total_jobs_submitted=metrics.total_jobs_submitted,
                last_action=metrics.last_scale_action,
                last_action_at=metrics.last_scale_action_at,
            ),
        )
