"""
Scheduled-job check-ins.

Wraps a request handler so that every scheduler-triggered invocation of a
configured job reports ``in_progress`` before the handler runs and exactly
one terminal check-in (``ok`` or ``error``) once it settles.

Usage:
    from beacon.instrumentation.crons import wrap_with_check_ins

    @app.get("/cron/sync")
    @wrap_with_check_ins(jobs=[{"path": "/cron/sync", "schedule": "0 * * * *"}])
    async def sync(request: Request):
        ...
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import time
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, TypeVar, Union
from urllib.parse import urlsplit

import structlog

from beacon.core.config import CronJob, CronsConfig, get_config
from beacon.observability.client import TracingClient
from beacon.observability.context import get_client, isolation_scope
from beacon.observability.types import CheckIn, CheckInStatus, MonitorConfig, MonitorSchedule

logger = structlog.get_logger(__name__)

T = TypeVar('T')

JobSpec = Union[CronJob, Mapping[str, Any]]


class CheckInMonitor:
    """
    Check-in lifecycle of one job execution.

    ``start()`` reports ``in_progress``; the first ``finish()`` reports the
    terminal status with the elapsed monotonic time. Later calls to
    ``finish()`` are ignored.
    """

    def __init__(
        self,
        client: TracingClient,
        monitor_slug: str,
        schedule: str,
        checkin_margin: int = 2,
        max_runtime: int = 60 * 12,
    ):
        self.client = client
        self.monitor_slug = monitor_slug
        self.monitor_config = MonitorConfig(
            schedule=MonitorSchedule(value=schedule),
            checkin_margin=checkin_margin,
            max_runtime=max_runtime,
        )
        self.check_in_id: Optional[str] = None
        self.status: Optional[CheckInStatus] = None
        self._start_time: Optional[float] = None

    @property
    def is_settled(self) -> bool:
        return self.status is not None and self.status.is_terminal

    def start(self) -> None:
        self.check_in_id = self.client.capture_check_in(CheckIn(
            monitor_slug=self.monitor_slug,
            status=CheckInStatus.IN_PROGRESS,
            monitor_config=self.monitor_config,
        ))
        self.status = CheckInStatus.IN_PROGRESS
        self._start_time = time.monotonic()

    def finish(self, status: CheckInStatus) -> bool:
        """Report the terminal status. Returns False if already settled."""
        if self.is_settled:
            return False

        self.status = status
        duration = time.monotonic() - self._start_time
        self.client.capture_check_in(CheckIn(
            monitor_slug=self.monitor_slug,
            status=status,
            check_in_id=self.check_in_id,
            duration=duration,
        ))

        logger.debug(
            "Job check-in settled",
            monitor_slug=self.monitor_slug,
            status=status.value,
            duration=duration,
        )
        return True

    def finish_from_future(self, future: "asyncio.Future[Any]") -> None:
        if future.cancelled() or future.exception() is not None:
            self.finish(CheckInStatus.ERROR)
        else:
            self.finish(CheckInStatus.OK)


# === Request inspection ===

def _get_header(request: Any, name: str) -> Optional[str]:
    headers = getattr(request, "headers", None)
    if not headers:
        return None

    value = headers.get(name)
    if value is None:
        for key, item in headers.items():
            if key.lower() == name:
                return item
    return value


def _request_path(request: Any) -> Optional[str]:
    url = getattr(request, "url", None)

    path = getattr(url, "path", None)
    if isinstance(path, str):
        return path

    path = getattr(request, "path", None)
    if isinstance(path, str):
        return path

    if url is None:
        return None
    return urlsplit(str(url)).path


def _find_request(args: tuple, kwargs: dict) -> Any:
    if args:
        return args[0]
    return kwargs.get("request")


def _normalize_jobs(jobs: Iterable[JobSpec]) -> List[CronJob]:
    normalized = []
    for job in jobs:
        if isinstance(job, CronJob):
            normalized.append(job)
            continue
        path = job.get("path")
        schedule = job.get("schedule")
        # Incomplete entries can never match
        if path and schedule:
            normalized.append(CronJob(path=path, schedule=schedule))
    return normalized


def _begin_check_in(
    request: Any,
    jobs: Optional[List[CronJob]],
    crons: CronsConfig,
) -> Optional[CheckInMonitor]:
    """Start a monitor if this invocation is a scheduled run of a configured job."""
    if request is None or not jobs:
        return None

    user_agent = _get_header(request, "user-agent") or ""
    if crons.scheduler_user_agent not in user_agent:
        return None

    path = _request_path(request)
    job = next((j for j in jobs if j.path == path), None)
    if job is None:
        logger.debug("No scheduled job configured for path", path=path)
        return None

    client = get_client()
    if client is None:
        logger.debug("No client bound, skipping check-ins", path=path)
        return None

    monitor = CheckInMonitor(
        client,
        monitor_slug=job.path,
        schedule=job.schedule,
        checkin_margin=crons.checkin_margin,
        max_runtime=crons.max_runtime,
    )
    monitor.start()
    return monitor


async def _observe_awaitable(awaitable: Awaitable[T], monitor: CheckInMonitor) -> T:
    try:
        result = await awaitable
    except BaseException:
        monitor.finish(CheckInStatus.ERROR)
        raise
    monitor.finish(CheckInStatus.OK)
    return result


def wrap_with_check_ins(
    handler: Optional[Callable[..., T]] = None,
    jobs: Optional[Iterable[JobSpec]] = None,
    config: Optional[CronsConfig] = None,
) -> Any:
    """
    Wrap ``handler`` with scheduled-job check-ins.

    Args:
        handler: Request handler; its first argument (or ``request``
            keyword) is the inbound request
        jobs: ``{path, schedule}`` entries; defaults to the configured jobs
        config: Crons settings; defaults to the global configuration

    Can be used directly, ``wrap_with_check_ins(handler, jobs)``, or as a
    decorator, ``@wrap_with_check_ins(jobs=jobs)``. The wrapper keeps the
    handler's signature and return shape. A future returned by a
    synchronous handler is returned as-is, with the terminal check-in
    attached as a done-callback. A coroutine returned by a synchronous
    handler is the one exception: it comes back wrapped in a coroutine
    that awaits it and then reports, since a coroutine cannot take a
    callback.

    Jobs are matched on the request path; the query string is ignored.
    """
    if handler is None:
        return functools.partial(wrap_with_check_ins, jobs=jobs, config=config)

    crons = config or get_config().crons
    job_list = _normalize_jobs(jobs) if jobs is not None else list(crons.jobs)

    if asyncio.iscoroutinefunction(handler):
        @functools.wraps(handler)
        async def async_wrapper(*args, **kwargs):
            with isolation_scope():
                monitor = _begin_check_in(_find_request(args, kwargs), job_list, crons)
                if monitor is None:
                    return await handler(*args, **kwargs)

                try:
                    result = await handler(*args, **kwargs)
                except BaseException:
                    monitor.finish(CheckInStatus.ERROR)
                    raise

                monitor.finish(CheckInStatus.OK)
                return result

        return async_wrapper

    @functools.wraps(handler)
    def sync_wrapper(*args, **kwargs):
        with isolation_scope():
            monitor = _begin_check_in(_find_request(args, kwargs), job_list, crons)
            if monitor is None:
                return handler(*args, **kwargs)

            try:
                result = handler(*args, **kwargs)
            except BaseException:
                monitor.finish(CheckInStatus.ERROR)
                raise

            if asyncio.isfuture(result):
                result.add_done_callback(monitor.finish_from_future)
                return result

            if inspect.isawaitable(result):
                # Not the original object: the wrapper reports once awaited
                return _observe_awaitable(result, monitor)

            monitor.finish(CheckInStatus.OK)
            return result

    return sync_wrapper
