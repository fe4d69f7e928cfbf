# batch_scaler/api/__init__.py
from .models import TriggerRequest, TriggerResponse, CheckResponse, ScalingStatusResponse
from .router import router, get_controller
from .exceptions import ScalingUnavailableError, ScalingRequestError

__all__ = [
    'TriggerRequest',
    'TriggerResponse',
    'CheckResponse',
    'ScalingStatusResponse',
    'router',
    'get_controller',
    'ScalingUnavailableError',
    'ScalingRequestError'
]
