"""
Schedule table and the handler every cron fire goes through.

The table is plain data: each ScheduledTrigger names the dispatcher
(wake_up or run_task), the settings key holding the target's base URL,
and the literal arguments bound to it. Changing a schedule never touches
dispatch code.
"""
import asyncio
import logging
from typing import Optional, Union

import httpx

from wakecron.config import Settings
from wakecron.schemas import AuthMode, ScheduledTrigger, TriggerOutcome
from wakecron.services.trigger import run_task
from wakecron.services.wakeup import wake_up


logger = logging.getLogger(__name__)


def _job(name: str, cron: str, timeframe: str) -> ScheduledTrigger:
    return ScheduledTrigger(
        name=name,
        cron=cron,
        kind="run_task",
        service=timeframe,
        url_setting="KLINE_PROVIDER_URL",
        path=f"/api/jobs/run/{timeframe}",
        payload={"timeframe": timeframe},
    )


def build_schedule(settings: Settings) -> list[ScheduledTrigger]:
    """
    The full cron table.

    Minute offsets are staggered so no two triggers share a tick.
    Jitter bounds and wake-up paths are read once from settings.
    """
    return [
        # === Wake-ups (every 10 minutes, jittered) ===
        ScheduledTrigger(
            name="wake-coin-sifter",
            cron="1-59/10 * * * *",
            kind="wake_up",
            service="CoinSifter",
            url_setting="COIN_SIFTER_URL",
            path=settings.COIN_SIFTER_WAKEUP_PATH,
            auth_mode=AuthMode.TOKEN_HEADER,
            max_jitter_seconds=settings.WAKEUP_MAX_JITTER_SECONDS,
        ),
        ScheduledTrigger(
            name="wake-kline-provider",
            cron="3-59/10 * * * *",
            kind="wake_up",
            service="KlineProvider",
            url_setting="KLINE_PROVIDER_URL",
            path=settings.KLINE_WAKEUP_PATH,
            auth_mode=AuthMode.BEARER,
            max_jitter_seconds=settings.WAKEUP_MAX_JITTER_SECONDS,
        ),
        ScheduledTrigger(
            name="wake-generic",
            cron="6-59/10 * * * *",
            kind="wake_up",
            service="WakeUpTarget",
            url_setting="WAKEUP_URL",
            path=settings.WAKEUP_PATH,
            auth_mode=AuthMode.BEARER,
            max_jitter_seconds=settings.WAKEUP_SHORT_JITTER_SECONDS,
        ),
        # === Data-collection jobs ===
        # 1h skips midnight, when the 1d job runs
        _job("task-1h", "0 1-23 * * *", "1h"),
        ScheduledTrigger(
            name="task-fr",
            cron="4 */4 * * *",
            kind="run_task",
            service="FR",
            url_setting="KLINE_PROVIDER_URL",
            path="/api/v1/internal/update-fr",
        ),
        _job("task-4h", "8 */4 * * *", "4h"),
        _job("task-12h", "12 12 * * *", "12h"),
        _job("task-1d", "0 0 * * *", "1d"),
    ]


async def run_trigger(
    trigger: ScheduledTrigger,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    max_jitter_seconds: Optional[int] = None,
) -> Union[asyncio.Task, TriggerOutcome, None]:
    """
    Handle one cron fire.

    Resolves the base URL; when it is not configured the fire is logged
    and skipped without any HTTP call. Otherwise dispatches to the
    wake-up or job trigger dispatcher.

    Args:
        trigger: Table row that fired
        settings: Service settings
        client: Optional shared HTTP client
        max_jitter_seconds: Override of the row's jitter bound (manual runs)

    Returns:
        The wake-up task, the job trigger outcome, or None when skipped
    """
    base_url = settings.service_url(trigger.url_setting)
    if not base_url:
        logger.error(
            "❌ [CRON %s] %s is not set, skipping",
            trigger.name, trigger.url_setting,
            extra={"trigger": trigger.name},
        )
        return None

    if trigger.kind == "wake_up":
        jitter = trigger.max_jitter_seconds if max_jitter_seconds is None else max_jitter_seconds
        return wake_up(
            trigger.service,
            base_url + trigger.path,
            trigger.auth_mode,
            jitter,
            settings,
            client=client,
        )

    return await run_task(
        trigger.service,
        base_url,
        trigger.path,
        settings,
        payload=trigger.payload,
        client=client,
    )
