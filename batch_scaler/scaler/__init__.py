# batch_scaler/scaler/__init__.py
from .controller import BatchScalingController
from .scheduler import ScalingScheduler
from .auto_scaler import AutoScaler
from .models import (
    DecisionReason,
    MetricsSnapshot,
    Observation,
    ScalingConfig,
    ScalingDecision,
    ScalingState,
)
from .exceptions import ScalingError, ScalingDisabledError

__all__ = [
    'BatchScalingController',
    'ScalingScheduler',
    'AutoScaler',
    'DecisionReason',
    'MetricsSnapshot',
    'Observation',
    'ScalingConfig',
    'ScalingDecision',
    'ScalingState',
    'ScalingError',
    'ScalingDisabledError'
]
