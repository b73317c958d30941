"""
Base AsyncService class for projector services.

Provides lifecycle management, HTTP server, health checks,
background workers and graceful shutdown capabilities.
"""

import asyncio
import signal
from abc import ABC, abstractmethod
from typing import Optional, List, Coroutine, Any

from aiohttp import web
import structlog
import psutil

from .config import ServiceConfig
from .health import HealthChecker
from .metrics import MetricsCollector


logger = structlog.get_logger(__name__)


class AsyncService(ABC):
    """
    Base class for async projector services.

    Provides common functionality:
    - HTTP server for health and metrics
    - Background workers whose failure stops the service
    - Graceful shutdown on SIGTERM/SIGINT

    A worker that dies with an exception is recorded as the fatal error;
    ``run()`` re-raises it once shutdown has completed so the process can
    exit non-zero.
    """

    def __init__(self, config: ServiceConfig):
        self.config = config
        self.logger = structlog.get_logger(self.config.service_name).bind(service=self.config.service_name)

        # HTTP components
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        # Framework components
        self.health_checker = HealthChecker(self.config)
        self.metrics = MetricsCollector(self.config.service_name.replace("-", "_"))

        # Background workers
        self.workers: List[asyncio.Task] = []
        self.fatal_error: Optional[BaseException] = None

        # Set when the service should stop, by signal or by worker exit
        self.stop_event = asyncio.Event()
        self._shutdown_done = False

        self.metrics_task: Optional[asyncio.Task] = None

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum, frame):
            self.logger.info("Received shutdown signal", signal=signum)
            loop.call_soon_threadsafe(self.request_stop)

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

    def request_stop(self) -> None:
        """Ask the service to stop; idempotent."""
        if not self.stop_event.is_set():
            self.logger.info("Stop requested")
        self.stop_event.set()

    def add_worker(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """Run ``coro`` as a background worker owned by the service."""
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(self._on_worker_done)
        self.workers.append(task)
        return task

    def _on_worker_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._record_fatal(error, worker=task.get_name())
        else:
            self.logger.info("Worker finished", worker=task.get_name())
        self.request_stop()

    def _record_fatal(self, error: BaseException, worker: str) -> None:
        if self.fatal_error is None:
            self.fatal_error = error
            details = error.to_dict() if hasattr(error, "to_dict") else {}
            self.logger.critical(
                "Worker failed",
                worker=worker,
                error=str(error),
                error_type=type(error).__name__,
                **details,
            )
            self.metrics.record_error(type(error).__name__, worker)

    async def startup(self) -> None:
        """Initialize service components."""
        self.logger.info("Starting service")

        self.app = web.Application()
        self._setup_routes()

        await self._startup_hook()

        self.metrics_task = asyncio.create_task(self._update_metrics_periodically())

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(
            self.runner,
            host="0.0.0.0",
            port=self.config.observability.health_port
        )
        await self.site.start()

        self.logger.info(
            "Service started",
            port=self.config.observability.health_port
        )

    async def shutdown(self) -> None:
        """Gracefully shutdown service."""
        if self._shutdown_done:
            return
        self._shutdown_done = True
        self.logger.info("Shutting down service")

        if self.site:
            await self.site.stop()

        # Workers wind down on their own terms; resources go after them
        self._stop_workers()
        if self.workers:
            results = await asyncio.gather(*self.workers, return_exceptions=True)
            for task, result in zip(self.workers, results):
                if isinstance(result, Exception):
                    self._record_fatal(result, worker=task.get_name())

        await self._shutdown_hook()

        if self.metrics_task:
            self.metrics_task.cancel()
            try:
                await self.metrics_task
            except asyncio.CancelledError:
                pass

        if self.runner:
            await self.runner.cleanup()

        self.logger.info("Service shutdown complete")

    def _setup_routes(self) -> None:
        """Setup HTTP routes."""
        if not self.app:
            return

        self.app.router.add_get("/health", self._health_handler)
        self.app.router.add_get("/health/ready", self._readiness_handler)
        self.app.router.add_get("/health/live", self._liveness_handler)
        self.app.router.add_get("/metrics", self._metrics_handler)

        self._setup_service_routes()

    def _setup_service_routes(self) -> None:
        """Setup service-specific HTTP routes. Override in subclasses."""
        pass

    async def _health_handler(self, request: web.Request) -> web.Response:
        """Health check handler."""
        health_status = await self.health_checker.check_health()
        status_code = 200 if health_status["healthy"] else 503

        return web.json_response(health_status, status=status_code)

    async def _readiness_handler(self, request: web.Request) -> web.Response:
        """Readiness check handler."""
        ready_status = await self.health_checker.check_readiness()
        status_code = 200 if ready_status["ready"] else 503

        return web.json_response(ready_status, status=status_code)

    async def _liveness_handler(self, request: web.Request) -> web.Response:
        """Liveness check handler."""
        alive = self.fatal_error is None
        return web.json_response({"alive": alive}, status=200 if alive else 503)

    async def _metrics_handler(self, request: web.Request) -> web.Response:
        """Metrics handler."""
        return web.Response(
            body=self.metrics.get_metrics(),
            headers={"Content-Type": self.metrics.get_content_type()},
        )

    def _stop_workers(self) -> None:
        """Ask background workers to finish. Override in subclasses."""
        pass

    @abstractmethod
    async def _startup_hook(self) -> None:
        """Service-specific startup logic. Override in subclasses."""
        pass

    @abstractmethod
    async def _shutdown_hook(self) -> None:
        """Service-specific shutdown logic. Override in subclasses."""
        pass

    async def _update_metrics_periodically(self) -> None:
        """Update metrics periodically."""
        while not self.stop_event.is_set():
            try:
                self.metrics.update_service_info(
                    version=self.config.version,
                    environment=self.config.environment
                )

                health_status = await self.health_checker.check_health()
                self.metrics.set_health_status(health_status["healthy"])

                try:
                    self.metrics.set_memory_usage(psutil.Process().memory_info().rss)
                except psutil.Error as e:
                    logger.warning("Failed to update memory metrics", error=str(e))

                await asyncio.sleep(30)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error updating metrics", error=str(e))
                await asyncio.sleep(30)

    async def run(self) -> None:
        """Run the service until stopped, re-raising any fatal worker error."""
        self._setup_signal_handlers()
        try:
            await self.startup()
            await self.stop_event.wait()
        except Exception as e:
            self.logger.error("Service error", error=str(e), exc_info=True)
            raise
        finally:
            await self.shutdown()

        if self.fatal_error is not None:
            raise self.fatal_error
