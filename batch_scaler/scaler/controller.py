# batch_scaler/scaler/controller.py
import asyncio
import logging
import time
from typing import Callable, List, Optional, TYPE_CHECKING

from .auto_scaler import AutoScaler
from .exceptions import ScalingDisabledError
from .models import (
    MetricsSnapshot,
    Observation,
    ScalingConfig,
    ScalingDecision,
    ScalingState,
    utcnow,
)

# Import for type checking only
if TYPE_CHECKING:
    from batch_scaler.broker.probe import QueueProbe
    from batch_scaler.fleet.inspector import FleetInspector
    from batch_scaler.fleet.models import JobDetail
    from batch_scaler.fleet.submitter import JobSubmitter

logger = logging.getLogger(__name__)


class BatchScalingController:
    """Runs scaling ticks against RabbitMQ and AWS Batch and owns the scaling state.

    Without a probe, inspector and submitter the controller is disabled:
    ticks do nothing and metrics report ``enabled=False``.
    """

    def __init__(
        self,
        config: ScalingConfig,
        probe: Optional["QueueProbe"] = None,
        inspector: Optional["FleetInspector"] = None,
        submitter: Optional["JobSubmitter"] = None,
        state: Optional[ScalingState] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.probe = probe
        self.inspector = inspector
        self.submitter = submitter
        self.state = state or ScalingState()
        self.clock = clock
        self.enabled = all(c is not None for c in (probe, inspector, submitter))
        self.auto_scaler = AutoScaler(config)
        self._lock = asyncio.Lock()
        self._last_observation: Optional[Observation] = None
        self._snapshot = MetricsSnapshot.build(self.enabled, None, self.state)

    @property
    def tick_in_progress(self) -> bool:
        return self._lock.locked()

    def get_metrics(self) -> MetricsSnapshot:
        """Last published snapshot. Never reflects a half-finished tick."""
        return self._snapshot

    def _publish(self) -> None:
        self._snapshot = MetricsSnapshot.build(
            self.enabled, self._last_observation, self.state
        )

    async def tick(self) -> Optional[ScalingDecision]:
        """Observe the queue and fleet once and scale up if needed.

        Returns the decision taken, or None when disabled, skipped because
        another tick holds the lock, or failed.
        """
        if not self.enabled:
            return None

        if self._lock.locked():
            logger.warning("Previous scaling tick still running, skipping this one")
            return None

        async with self._lock:
            return await self._guarded_tick()

    async def _guarded_tick(self) -> Optional[ScalingDecision]:
        try:
            return await self._run_tick()
        except Exception:
            logger.exception("Error checking queue and scaling")
            return None

    async def _run_tick(self) -> ScalingDecision:
        queue_stats, fleet = await asyncio.gather(
            self.probe.probe(), self.inspector.inspect()
        )

        observation = Observation(
            queue_depth=queue_stats.queue_depth,
            consumer_count=queue_stats.consumer_count,
            fleet_running=fleet.running,
            fleet_pending=fleet.pending,
        )
        self._last_observation = observation

        logger.info(
            f"Queue: {observation.queue_depth} msgs, {observation.consumer_count} consumers"
            f" | Batch: {observation.fleet_running} running, {observation.fleet_pending} pending"
        )

        now = self.clock()
        decision = self.auto_scaler.evaluate(
            observation, self.state.last_scale_action_at, now
        )

        if not decision.local_worker_active and observation.queue_depth > 0:
            logger.warning(
                f"No local consumers detected, threshold lowered to "
                f"{decision.effective_threshold}"
            )

        if decision.should_scale:
            await self._scale_up(decision, observation, now)
        elif observation.queue_depth == 0 and observation.current_fleet == 0:
            self.state.last_action_description = f"idle (no work) at {utcnow().isoformat()}"

        self._publish()
        return decision

    async def _scale_up(
        self, decision: ScalingDecision, observation: Observation, now: float
    ) -> None:
        logger.info(
            f"Scale-up: queue depth {observation.queue_depth}, "
            f"fleet {decision.current_fleet}/{self.config.max_workers} -> "
            f"launching {decision.workers_to_add} Batch worker(s)"
        )

        submitted = 0
        for _ in range(decision.workers_to_add):
            job_id = await self.submitter.submit(
                self.config.batch_worker_concurrency, observation.queue_depth
            )
            if job_id:
                submitted += 1
                self.state.total_jobs_submitted += 1

        # Cooldown bounds the attempt rate, so failed submissions still count
        self.state.last_scale_action_at = now
        self.state.last_scale_action_time = utcnow()

        description = f"scale-up: +{decision.workers_to_add} workers"
        if submitted < decision.workers_to_add:
            description += f" ({submitted} submitted)"
            logger.warning(
                f"Only {submitted} of {decision.workers_to_add} Batch worker(s) submitted"
            )
        self.state.last_action_description = (
            f"{description} at {self.state.last_scale_action_time.isoformat()}"
        )

    async def manual_trigger(self, count: int = 1) -> List[str]:
        """Submit up to ``max_workers`` workers regardless of queue depth and cooldown."""
        if not self.enabled:
            raise ScalingDisabledError("AWS Batch auto-scaling is not enabled")

        count = max(0, min(count, self.config.max_workers))
        job_ids: List[str] = []

        async with self._lock:
            for _ in range(count):
                job_id = await self.submitter.submit(
                    self.config.batch_worker_concurrency, 0
                )
                if job_id:
                    job_ids.append(job_id)
                    self.state.total_jobs_submitted += 1
            self._publish()

        logger.info(f"Manually triggered {len(job_ids)} Batch worker(s)")
        return job_ids

    async def check(self) -> MetricsSnapshot:
        """Run a tick now instead of waiting for the scheduler.

        Unlike a scheduled tick, this waits for a tick or manual trigger in
        progress to finish and then runs its own, so the returned metrics are
        always from a fresh observation.
        """
        if not self.enabled:
            raise ScalingDisabledError("AWS Batch auto-scaling is not enabled")
        async with self._lock:
            await self._guarded_tick()
        return self.get_metrics()

    async def describe_jobs(self, job_ids: List[str]) -> List["JobDetail"]:
        if not self.enabled:
            return []
        return await self.inspector.describe_jobs(job_ids)
