"""
Job trigger dispatcher.

Asks a downstream worker to start a data-collection job. The worker
answers straight away (202 when it took the job, 409 when it is still
busy with the previous one); completion is never awaited.

A rejected trigger is simply lost until the next cron tick: there is
no retry and no queue.
"""
import logging
from typing import Optional, Any

import httpx

from wakecron.config import Settings
from wakecron.deps import auth_headers, build_http_client, send
from wakecron.schemas import AuthMode, DispatchRequest, TriggerOutcome


logger = logging.getLogger(__name__)

ACCEPTED_STATUSES = (200, 202)


def classify_status(status_code: int) -> TriggerOutcome:
    """Map a worker's HTTP status to a trigger outcome."""
    if status_code in ACCEPTED_STATUSES:
        return TriggerOutcome.ACCEPTED
    if status_code == 409:
        return TriggerOutcome.BUSY
    if status_code == 403:
        return TriggerOutcome.FORBIDDEN
    return TriggerOutcome.FAILED


async def run_task(
    service_name: str,
    base_url: str,
    endpoint_path: str,
    settings: Settings,
    payload: Optional[dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> TriggerOutcome:
    """
    POST a job trigger and log how the worker answered.

    Args:
        service_name: Label used in log lines (e.g. "1h")
        base_url: Worker base URL
        endpoint_path: Job endpoint appended to base_url
        settings: Service settings (token, timeouts)
        payload: Optional JSON body, e.g. {"timeframe": "1h"}
        client: Optional shared client; a fresh one is opened otherwise

    Returns:
        Outcome of the single call (informational only)
    """
    url = base_url.rstrip("/") + endpoint_path
    request = DispatchRequest(
        url=url,
        method="POST",
        headers=auth_headers(AuthMode.BEARER, settings.SECRET_TOKEN),
        body=payload,
    )
    extra = {"trigger": service_name, "url": url}

    logger.info("🚀 [CRON %s] Triggering job at %s", service_name, url, extra=extra)

    try:
        if client is None:
            async with build_http_client(settings) as own_client:
                response = await send(own_client, request)
        else:
            response = await send(client, request)
    except httpx.HTTPError as e:
        logger.error(
            "💥 [CRON %s] Network error while triggering job: %s",
            service_name, str(e) or type(e).__name__,
            extra=extra,
        )
        return TriggerOutcome.TRANSPORT_ERROR

    outcome = classify_status(response.status_code)
    extra["status_code"] = response.status_code

    if outcome is TriggerOutcome.ACCEPTED:
        logger.info(
            "✅ [CRON %s] Job accepted (%s)",
            service_name, response.status_code, extra=extra,
        )
    elif outcome is TriggerOutcome.BUSY:
        logger.warning(
            "⚠️ [CRON %s] Job rejected (409 Conflict): worker is busy",
            service_name, extra=extra,
        )
    elif outcome is TriggerOutcome.FORBIDDEN:
        logger.error(
            "⛔ [CRON %s] Authorization rejected by worker (403 Forbidden)",
            service_name, extra=extra,
        )
    else:
        logger.error(
            "❌ [CRON %s] Worker returned an error: %s %s",
            service_name, response.status_code, response.text,
            extra=extra,
        )

    return outcome
