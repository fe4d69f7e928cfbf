# batch_scaler/scaler/auto_scaler.py
import math
import logging
from typing import Optional

from .models import DecisionReason, Observation, ScalingConfig, ScalingDecision

logger = logging.getLogger(__name__)


class AutoScaler:
    """Turns an observation into the number of Batch workers to add.

    Scale-up only: idle workers exit on their own, so the fleet shrinks
    without any action from here.
    """

    def __init__(self, config: ScalingConfig):
        self.config = config

    def effective_threshold(self, local_worker_active: bool) -> int:
        if local_worker_active:
            return self.config.queue_threshold_with_local_worker
        return self.config.queue_threshold_without_local_worker

    def effective_local_capacity(self, local_worker_active: bool) -> int:
        return self.config.local_worker_concurrency if local_worker_active else 0

    def in_cooldown(self, last_scale_action_at: Optional[float], now: float) -> bool:
        if last_scale_action_at is None:
            return False
        return now - last_scale_action_at < self.config.cooldown_seconds

    def evaluate(
        self,
        observation: Observation,
        last_scale_action_at: Optional[float],
        now: float,
    ) -> ScalingDecision:
        """Decide how many workers to add for this tick."""
        local_worker_active = observation.consumer_count > 0
        threshold = self.effective_threshold(local_worker_active)
        local_capacity = self.effective_local_capacity(local_worker_active)
        current_fleet = observation.current_fleet

        base = dict(
            local_worker_active=local_worker_active,
            effective_threshold=threshold,
            effective_local_capacity=local_capacity,
            current_fleet=current_fleet,
        )

        if observation.queue_depth < threshold:
            return ScalingDecision(reason=DecisionReason.BELOW_THRESHOLD, **base)

        if self.in_cooldown(last_scale_action_at, now):
            logger.debug(
                f"Cooldown active ({self.config.cooldown_seconds}s), "
                f"skipping scale decision for queue depth {observation.queue_depth}"
            )
            return ScalingDecision(reason=DecisionReason.COOLDOWN, **base)

        excess = max(0, observation.queue_depth - local_capacity)
        workers_wanted = math.ceil(excess / self.config.batch_worker_concurrency)
        to_add = min(
            workers_wanted - current_fleet,
            self.config.max_workers - current_fleet,
        )
        to_add = max(0, to_add)

        return ScalingDecision(
            reason=DecisionReason.SCALE_UP if to_add > 0 else DecisionReason.AT_CAPACITY,
            excess=excess,
            workers_wanted=workers_wanted,
            workers_to_add=to_add,
            **base,
        )
