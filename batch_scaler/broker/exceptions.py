# batch_scaler/broker/exceptions.py
class BrokerError(Exception):
    """Base exception for broker operations"""

    pass


class ProbeError(BrokerError):
    """Raised when queue statistics cannot be read from the broker"""

    pass
