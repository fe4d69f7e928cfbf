from .models import QueueStats
from .probe import QueueProbe
from .exceptions import BrokerError, ProbeError

__all__ = [
    'QueueStats',
    'QueueProbe',
    'BrokerError',
    'ProbeError'
]
