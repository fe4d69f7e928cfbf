# batch_scaler/api/exceptions.py
from fastapi import HTTPException
from starlette.status import (
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class ScalingUnavailableError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class ScalingRequestError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
