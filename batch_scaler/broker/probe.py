# batch_scaler/broker/probe.py
import asyncio
import logging

import aio_pika

from .exceptions import ProbeError
from .models import QueueStats
from batch_scaler.log_handler import mask_url

logger = logging.getLogger(__name__)


class QueueProbe:
    """Reads ready-message and consumer counts of one RabbitMQ queue.

    A fresh connection is opened for every probe and closed before
    returning. Nothing is consumed or acknowledged.
    """

    def __init__(self, url: str, queue_name: str, timeout: float = 10.0):
        self.url = url
        self.queue_name = queue_name
        self.timeout = timeout

    async def probe(self) -> QueueStats:
        """Return current queue statistics, or zeroed stats if the broker is unreachable."""
        try:
            return await asyncio.wait_for(self._fetch_stats(), timeout=self.timeout)
        except ProbeError as e:
            error = str(e)
        except asyncio.TimeoutError:
            error = f"timed out after {self.timeout}s"
        except Exception as e:
            error = f"{type(e).__name__}: {e}"

        logger.warning(
            f"Failed to check depth of queue '{self.queue_name}' "
            f"at {mask_url(self.url)}: {error}"
        )
        return QueueStats.unavailable(error)

    async def _fetch_stats(self) -> QueueStats:
        try:
            connection = await aio_pika.connect(self.url, timeout=self.timeout)
        except Exception as e:
            raise ProbeError(f"connection failed: {e}") from e

        try:
            channel = await connection.channel()
            # passive: attach to the existing queue without redeclaring it
            queue = await channel.declare_queue(self.queue_name, passive=True)
            result = queue.declaration_result
            stats = QueueStats(
                queue_depth=result.message_count or 0,
                consumer_count=result.consumer_count or 0,
            )
        except Exception as e:
            raise ProbeError(f"queue inspection failed: {e}") from e
        finally:
            try:
                await connection.close()
            except Exception as e:
                logger.debug(f"Error closing broker connection: {str(e)}")

        logger.debug(
            f"Queue '{self.queue_name}': ready={stats.queue_depth}, "
            f"consumers={stats.consumer_count}"
        )
        return stats
