"""Process entry point for the recovery service.

Builds the resilience core from settings, installs the periodic sweeps and
runs until SIGINT/SIGTERM. Applications embedding the core pass their own
collaborator stores and retry handlers to ``run()``.

The ``safevideo-recovery`` script starts without collaborators, so only the
retry replay sweep runs. Due retry records with no registered handler are
moved onto the in-process retry queue and are lost when the process exits.
"""

import asyncio
import signal
from typing import Dict, Optional, TYPE_CHECKING

from structlog.stdlib import BoundLogger

from infrastructure.logging import configure_logging
from infrastructure.resilience import create_resilience_service
from infrastructure.resilience.retry import RetryHandler
from infrastructure.services import get_settings
from jobs import scheduled_tasks
from modules.batch_jobs import BatchJobRecoveryRegistry, BatchJobStore
from modules.sharegram import IntegrationStore

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _list_configs(settings: "Settings", logger: BoundLogger) -> None:
    config_settings: dict[str, list[object]] = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


async def run(
    settings: Optional["Settings"] = None,
    stop_event: Optional[asyncio.Event] = None,
    batch_job_store: Optional[BatchJobStore] = None,
    job_registry: Optional[BatchJobRecoveryRegistry] = None,
    integration_store: Optional[IntegrationStore] = None,
    retry_handlers: Optional[Dict[str, RetryHandler]] = None,
) -> None:
    """Run the recovery service until ``stop_event`` is set or a signal arrives."""
    settings = settings or get_settings()
    logger = configure_logging(settings=settings)
    logger.info("application_startup", git_sha=settings.GIT_SHA)
    _list_configs(settings, logger)

    service = create_resilience_service(settings)
    scheduled_tasks.init(
        service,
        settings,
        batch_job_store=batch_job_store,
        job_registry=job_registry,
        integration_store=integration_store,
    )
    for operation_name, handler in (retry_handlers or {}).items():
        service.register_retry_handler(operation_name, handler)
    if not service.retry_channel.registered_operations:
        logger.warning(
            "retry_handlers_not_registered",
            detail="due retry records are only queued in-process",
        )

    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms (e.g. Windows)
            pass

    await service.start()
    try:
        health = await service.health_check()
        logger.info("application_ready", **health)
        await stop_event.wait()
    finally:
        logger.info("application_shutdown")
        await service.stop()


def main() -> None:
    """Console entry point; runs without collaborator stores or retry handlers."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
