# batch_scaler/scaler/exceptions.py
class ScalingError(Exception):
    """Base exception for scaling errors"""
    pass

class ScalingDisabledError(ScalingError):
    """Raised when an operator action hits a controller that is not configured"""
    pass
