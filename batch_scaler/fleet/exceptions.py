# batch_scaler/fleet/exceptions.py

class FleetError(Exception):
    """Base exception for compute fleet operations"""
    pass


class InspectError(FleetError):
    """Raised when job counts cannot be listed from the compute backend"""
    pass


class SubmitError(FleetError):
    """Raised when a provisioning call is rejected or fails"""
    pass
