# batch_scaler/broker/models.py
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class QueueStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    queue_depth: int = Field(default=0, ge=0)
    consumer_count: int = Field(default=0, ge=0)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def unavailable(cls, error: str) -> "QueueStats":
        """Zeroed stats used when the broker could not be read."""
        return cls(queue_depth=0, consumer_count=0, error=error)
