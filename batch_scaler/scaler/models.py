# batch_scaler/scaler/models.py
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScalingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # ready messages that trigger scaling while the local worker is consuming
    queue_threshold_with_local_worker: int = Field(default=2, gt=0)
    # ready messages that trigger scaling when nothing else drains the queue
    queue_threshold_without_local_worker: int = Field(default=1, ge=1)
    local_worker_concurrency: int = Field(default=1, gt=0)
    batch_worker_concurrency: int = Field(default=2, gt=0)
    max_workers: int = Field(default=10, gt=0)
    cooldown_seconds: float = Field(default=120.0, gt=0)
    worker_timeout_minutes: int = Field(default=30, gt=0)
    worker_idle_timeout_seconds: int = Field(default=60, gt=0)

    @model_validator(mode="after")
    def check_thresholds(self) -> "ScalingConfig":
        if self.queue_threshold_without_local_worker > self.queue_threshold_with_local_worker:
            raise ValueError(
                "queue_threshold_without_local_worker must not exceed "
                "queue_threshold_with_local_worker"
            )
        return self


class Observation(BaseModel):
    model_config = ConfigDict(frozen=True)

    queue_depth: int = Field(default=0, ge=0)
    consumer_count: int = Field(default=0, ge=0)
    fleet_running: int = Field(default=0, ge=0)
    fleet_pending: int = Field(default=0, ge=0)
    observed_at: datetime = Field(default_factory=utcnow)

    @property
    def current_fleet(self) -> int:
        return self.fleet_running + self.fleet_pending


class ScalingState(BaseModel):
    """Mutable scaling state. Written only by the controller holding its lock."""

    last_scale_action_at: Optional[float] = None  # monotonic seconds
    last_scale_action_time: Optional[datetime] = None
    total_jobs_submitted: int = Field(default=0, ge=0)
    last_action_description: str = "none"


class DecisionReason(str, Enum):
    BELOW_THRESHOLD = "below_threshold"
    COOLDOWN = "cooldown"
    AT_CAPACITY = "at_capacity"
    SCALE_UP = "scale_up"


class ScalingDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: DecisionReason
    local_worker_active: bool
    effective_threshold: int
    effective_local_capacity: int
    excess: int = 0
    workers_wanted: int = 0
    current_fleet: int = 0
    workers_to_add: int = 0

    @property
    def should_scale(self) -> bool:
        return self.workers_to_add > 0


class MetricsSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    queue_depth: int = 0
    consumer_count: int = 0
    batch_jobs_running: int = 0
    batch_jobs_pending: int = 0
    active_workers: int = 0
    last_scale_action: str = "none"
    last_scale_action_at: Optional[datetime] = None
    total_jobs_submitted: int = 0
    last_checked_at: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        enabled: bool,
        observation: Optional[Observation],
        state: ScalingState,
    ) -> "MetricsSnapshot":
        """Assemble a complete snapshot from the latest observation and state."""
        checked_at = observation.observed_at if observation is not None else None
        observation = observation or Observation()
        return cls(
            enabled=enabled,
            queue_depth=observation.queue_depth,
            consumer_count=observation.consumer_count,
            batch_jobs_running=observation.fleet_running,
            batch_jobs_pending=observation.fleet_pending,
            active_workers=observation.current_fleet,
            last_scale_action=state.last_action_description,
            last_scale_action_at=state.last_scale_action_time,
            total_jobs_submitted=state.total_jobs_submitted,
            last_checked_at=checked_at,
        )
