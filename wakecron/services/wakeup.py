"""
Wake-up dispatcher.

Pings a cheap endpoint of a downstream service so the hosting platform
keeps (or brings back) its compute warm. Each ping is delayed by a random
jitter so services woken on the same cron tick are not hit at once.

Fire-and-forget: the caller gets the spawned task handle back, but the
scheduler never awaits it. Every outcome ends up in the log only.
"""
import asyncio
import logging
import random
from typing import Optional, Awaitable, Callable

import httpx

from wakecron.config import Settings
from wakecron.deps import auth_headers, build_http_client, send
from wakecron.schemas import AuthMode, DispatchRequest, WakeUpOutcome


logger = logging.getLogger(__name__)

# Deferred pings still waiting or running. Held here so the event loop
# does not garbage-collect them mid-flight.
_pending: set[asyncio.Task] = set()


def draw_jitter(max_jitter_seconds: int, rng: Optional[random.Random] = None) -> int:
    """Uniform integer delay in [0, max_jitter_seconds], both ends inclusive."""
    if max_jitter_seconds < 0:
        raise ValueError(f"max_jitter_seconds must be >= 0, got {max_jitter_seconds}")
    return (rng or random).randint(0, max_jitter_seconds)


async def ping(
    service_name: str,
    url: str,
    auth_mode: AuthMode,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> WakeUpOutcome:
    """
    Issue one GET and classify the response.

    Never raises for HTTP or network failures; they are logged and
    reported through the returned outcome.
    """
    request = DispatchRequest(
        url=url,
        method="GET",
        headers=auth_headers(auth_mode, settings.SECRET_TOKEN),
    )
    extra = {"service": service_name, "url": url}

    try:
        if client is None:
            async with build_http_client(settings) as own_client:
                response = await send(own_client, request)
        else:
            response = await send(client, request)
    except httpx.HTTPError as e:
        logger.error(
            "💥 [Wake-Up] %s unreachable: %s",
            service_name, str(e) or type(e).__name__,
            extra=extra,
        )
        return WakeUpOutcome.TRANSPORT_ERROR

    if response.is_success:
        logger.info(
            "✅ [Wake-Up] %s is awake (%s)",
            service_name, response.status_code,
            extra={**extra, "status_code": response.status_code},
        )
        return WakeUpOutcome.OK

    logger.warning(
        "⚠️ [Wake-Up] %s answered %s: %s",
        service_name, response.status_code, response.text,
        extra={**extra, "status_code": response.status_code},
    )
    return WakeUpOutcome.REJECTED


async def _deferred_ping(
    delay: int,
    service_name: str,
    url: str,
    auth_mode: AuthMode,
    settings: Settings,
    client: Optional[httpx.AsyncClient],
    sleep: Callable[[float], Awaitable[None]],
) -> WakeUpOutcome:
    await sleep(delay)
    return await ping(service_name, url, auth_mode, settings, client=client)


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "💥 [Wake-Up] unexpected failure in %s",
            task.get_name(),
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def wake_up(
    service_name: str,
    url: str,
    auth_mode: AuthMode,
    max_jitter_seconds: int,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    rng: Optional[random.Random] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> asyncio.Task:
    """
    Schedule a jittered wake-up ping and return immediately.

    Must be called from inside a running event loop.

    Args:
        service_name: Label used in log lines
        url: Full URL to GET
        auth_mode: token-header or bearer
        max_jitter_seconds: Upper bound of the random delay
        settings: Service settings (token, timeouts)
        client: Optional shared client; a fresh one is opened otherwise

    Returns:
        The spawned task (callers may ignore it)
    """
    jitter_seconds = draw_jitter(max_jitter_seconds, rng)
    logger.info(
        "⏳ [Wake-Up] %s will be pinged in %ss",
        service_name, jitter_seconds,
        extra={"service": service_name, "jitter_seconds": jitter_seconds},
    )

    task = asyncio.get_running_loop().create_task(
        _deferred_ping(
            jitter_seconds, service_name, url, AuthMode(auth_mode),
            settings, client, sleep,
        ),
        name=f"wake-up:{service_name}",
    )
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    """Number of wake-up pings not yet finished."""
    return len(_pending)


async def cancel_pending() -> None:
    """Cancel outstanding pings; used at process shutdown only."""
    tasks = list(_pending)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
