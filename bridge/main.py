"""
Fiscal/POS Bridge - Main entry point.

Opens the fiscal registers, then serves the HTTP surface and the job
runner side by side until interrupted.
"""

import asyncio

import uvicorn
from redis.asyncio import Redis

from api import create_app
from application.fiscal_service import FiscalService
from application.job_runner import JobRunner
from application.orchestrator import TransactionOrchestrator
from application.pos_service import PosService
from domain.device_manager import DeviceManager
from infrastructure.redis_job_queue import RedisJobQueue
from infrastructure.report_client import ReportClient
from infrastructure.settings import get_settings
from loggers import logger


# =============================================================================
# Main Entry Point
# =============================================================================


def log_runner_exit(task: asyncio.Task) -> None:
    """Report a job runner task that ended while the server keeps serving."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Job runner exited unexpectedly: {error!r}")
    else:
        logger.info("Job runner task finished")


async def main() -> None:
    """
    Main entry point for the bridge.

    Builds the device manager from settings, connects every device and
    runs uvicorn and the job runner concurrently.
    """
    settings = get_settings()

    manager = DeviceManager.from_settings(settings)
    results = await manager.initialize_all()
    logger.info(f"Devices: {results}")

    app = create_app(manager, cors_origins=settings.http.cors_origins)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.http.host,
            port=settings.http.port,
            log_level="info",
        )
    )

    redis = Redis(
        host=settings.redis.host,
        port=settings.redis.port,
        decode_responses=settings.redis.decode_responses,
    )
    orchestrator = TransactionOrchestrator(
        fiscal=FiscalService(manager),
        pos=PosService(manager),
        report_sink=ReportClient(settings.agent.backend_url, settings.agent.agent_key),
        fiscal_device=settings.agent.fiscal_device,
        pos_timeout=settings.agent.pos_timeout_ms / 1000,
        credentials=(settings.agent.operator, settings.agent.password, settings.agent.till),
    )
    runner = JobRunner(RedisJobQueue(redis, settings.redis.job_queue), orchestrator)

    logger.info(
        f"Bridge listening on http://{settings.http.host}:{settings.http.port}, "
        f"jobs from '{settings.redis.job_queue}', reports to {settings.agent.backend_url}"
    )

    runner_task = asyncio.create_task(runner.run(), name="job-runner")
    runner_task.add_done_callback(log_runner_exit)
    try:
        await server.serve()
    finally:
        runner.stop()
        runner_task.cancel()
        try:
            await runner_task
        except asyncio.CancelledError:
            pass
        await manager.shutdown_all()
        await redis.aclose()
        logger.info("Bridge stopped")


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application stopped by user")


if __name__ == "__main__":
    run()
