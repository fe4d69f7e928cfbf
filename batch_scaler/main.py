import asyncio
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from batch_scaler.api import router
from batch_scaler.broker import QueueProbe
from batch_scaler.config import Settings
from batch_scaler.fleet import FleetInspector, JobSubmitter, create_batch_client, close_batch_client
from batch_scaler.scaler import BatchScalingController, ScalingConfig, ScalingScheduler
from batch_scaler.log_handler.logging_config import setup_logging, get_logger, mask_url, shutdown_logging


# Initialize centralized logging
log_listener = setup_logging(
    log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    log_file=os.environ.get("LOG_FILE") or None,
    module_levels={
        "batch_scaler.broker": os.environ.get("BROKER_LOG_LEVEL", "INFO"),
    }
)
logger = get_logger(__name__)


# Global state management
class AppState:
    def __init__(self):
        self.settings: Optional[Settings] = None
        self.controller: Optional[BatchScalingController] = None
        self.scheduler: Optional[ScalingScheduler] = None
        self.batch_client: Any = None
        self.submit_client: Any = None
        self.is_shutting_down: bool = False


app_state = AppState()


def build_controller(
    settings: Settings, batch_client: Any = None, submit_client: Any = None
) -> BatchScalingController:
    """
    Wire the probe, inspector and submitter from settings.
    Returns a disabled controller when required settings are missing.

    ``batch_client`` serves read-only calls with retries; ``submit_client``
    must make a single attempt per call.
    """
    missing = settings.missing_settings()
    if missing:
        logger.warning("AWS Batch auto-scaling DISABLED, missing configuration:")
        for name in missing:
            logger.warning(f"  - {name}")
        logger.warning("Video processing will use existing workers only")
        return BatchScalingController(ScalingConfig())

    config = settings.scaling_config()

    if batch_client is None:
        batch_client = create_batch_client(
            settings.aws_access_key_id,
            settings.aws_secret_access_key,
            settings.aws_region,
            timeout=settings.batch_api_timeout_seconds,
        )
    if submit_client is None:
        submit_client = create_batch_client(
            settings.aws_access_key_id,
            settings.aws_secret_access_key,
            settings.aws_region,
            timeout=settings.batch_api_timeout_seconds,
            max_attempts=1,
        )

    probe = QueueProbe(
        settings.rabbitmq_url,
        settings.rabbitmq_queue,
        timeout=settings.broker_timeout_seconds,
    )
    inspector = FleetInspector(
        batch_client,
        settings.aws_batch_job_queue,
        timeout=settings.batch_api_timeout_seconds,
    )
    submitter = JobSubmitter(
        submit_client,
        settings.aws_batch_job_queue,
        settings.aws_batch_job_definition,
        worker_timeout_minutes=config.worker_timeout_minutes,
        idle_timeout_seconds=config.worker_idle_timeout_seconds,
        asset_url_prefix=settings.asset_url_prefix,
        job_name_prefix=settings.job_name_prefix,
        tags=settings.job_tags(),
        timeout=settings.batch_api_timeout_seconds,
    )

    logger.info("AWS Batch auto-scaling ENABLED")
    logger.info(f"  Job queue:       {settings.aws_batch_job_queue}")
    logger.info(f"  Job definition:  {settings.aws_batch_job_definition}")
    logger.info(
        f"  Queue threshold: {config.queue_threshold_with_local_worker} messages "
        f"({config.queue_threshold_without_local_worker} without local worker)"
    )
    logger.info(f"  Local worker:    concurrency={config.local_worker_concurrency}")
    logger.info(f"  Batch worker:    concurrency={config.batch_worker_concurrency}")
    logger.info(f"  Max workers:     {config.max_workers}")
    logger.info(f"  Cooldown:        {config.cooldown_seconds}s")
    logger.info(f"  RabbitMQ:        {mask_url(settings.rabbitmq_url)}")
    logger.info(f"  Tick interval:   {settings.tick_interval_seconds}s")

    return BatchScalingController(
        config, probe=probe, inspector=inspector, submitter=submitter
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager for the FastAPI application.
    Builds the scaling controller and runs its scheduler while the app is up.
    """
    try:
        # Startup
        logger.info("Starting batch scaling service...")

        settings = Settings()
        app_state.settings = settings

        if settings.enabled:
            app_state.batch_client = create_batch_client(
                settings.aws_access_key_id,
                settings.aws_secret_access_key,
                settings.aws_region,
                timeout=settings.batch_api_timeout_seconds,
            )
            # SubmitJob is not idempotent, so its client makes one attempt per call
            app_state.submit_client = create_batch_client(
                settings.aws_access_key_id,
                settings.aws_secret_access_key,
                settings.aws_region,
                timeout=settings.batch_api_timeout_seconds,
                max_attempts=1,
            )
        app_state.controller = build_controller(
            settings, app_state.batch_client, app_state.submit_client
        )
        app_state.scheduler = ScalingScheduler(
            app_state.controller, interval=settings.tick_interval_seconds
        )
        app.state.controller = app_state.controller

        await app_state.scheduler.start()

        logger.info("Application startup complete")
        yield

        # Shutdown
        logger.info("Initiating graceful shutdown...")
        app_state.is_shutting_down = True

        shutdown_timeout = 30  # seconds
        try:
            await asyncio.wait_for(app_state.scheduler.stop(), timeout=shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Scaling scheduler shutdown timed out after {shutdown_timeout}s")

        close_batch_client(app_state.batch_client)
        close_batch_client(app_state.submit_client)
        logger.info("Application shutdown complete")

        shutdown_logging()

    except Exception as e:
        logger.error(f"Error during application lifecycle: {str(e)}")
        raise


def create_app() -> FastAPI:
    """Creates and configures the FastAPI application"""
    app = FastAPI(
        title="Batch Worker Scaling Service",
        description="Queue-driven auto-scaling of AWS Batch video workers",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        """Liveness check; also reports whether auto-scaling is active"""
        controller = getattr(app.state, "controller", None)
        return {
            "status": "ok",
            "scaling_enabled": bool(controller is not None and controller.enabled),
        }

    return app


def run_app():
    """Runs the application with Uvicorn"""
    try:
        app = create_app()

        config = uvicorn.Config(
            app=app,
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8000")),
            log_level="info",
            timeout_graceful_shutdown=30,
        )
        server = uvicorn.Server(config)
        server.run()
    except Exception as e:
        logger.error(f"Failed to start application: {str(e)}")
        raise


if __name__ == "__main__":
    run_app()
