"""
wakecron CLI - run the service or poke individual triggers by hand.

Usage:
    wakecron serve                 # Run HTTP server + scheduler (default)
    wakecron schedule              # Show cron table and next fire times
    wakecron run <trigger-name>    # Fire one trigger now (no jitter)
    wakecron help                  # Show this help message
"""
import sys
import asyncio
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from pydantic import ValidationError

from wakecron.config import Settings, reload_settings
from wakecron.logging_setup import configure_logging
from wakecron.tasks.jobs import build_schedule, run_trigger
from wakecron.tasks.schedule import cron_trigger


def print_header(text: str):
    """Print formatted header."""
    print(f"\n{'=' * 60}")
    print(f"  {text}")
    print(f"{'=' * 60}\n")


def print_status(key: str, value, indent: int = 0):
    """Print formatted status line."""
    spaces = "  " * indent
    print(f"{spaces}{key:30s}: {value}")


def load_settings_or_exit() -> Settings:
    """Build settings; a missing SECRET_TOKEN is fatal."""
    try:
        return reload_settings()
    except ValidationError as e:
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        print(f"💥 [ENV] Invalid configuration ({missing}). Is SECRET_TOKEN set?", file=sys.stderr)
        sys.exit(1)


def cmd_serve(settings: Settings):
    """Run uvicorn with the FastAPI app; the app lifespan starts the scheduler."""
    uvicorn.run(
        "wakecron.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


def cmd_schedule(settings: Settings):
    """Print every trigger with its next fire time."""
    print_header("Cron Schedule")

    now = datetime.now(timezone.utc)
    for trigger in build_schedule(settings):
        next_fire = cron_trigger(trigger, settings.SCHEDULER_TIMEZONE).get_next_fire_time(None, now)
        configured = "✓" if settings.service_url(trigger.url_setting) else "✗ (URL not set)"
        print(f"{trigger.name}")
        print_status("Cron", trigger.cron, 1)
        print_status("Target", f"{trigger.url_setting} + {trigger.path} {configured}", 1)
        if trigger.kind == "wake_up":
            print_status("Wake-up", f"{trigger.auth_mode.value}, jitter 0-{trigger.max_jitter_seconds}s", 1)
        else:
            print_status("Job trigger", trigger.payload or "no body", 1)
        print_status("Next fire", next_fire.isoformat() if next_fire else "never", 1)
    print()


async def cmd_run(settings: Settings, name: str) -> int:
    """Fire a single trigger immediately and wait for its HTTP call."""
    triggers = {t.name: t for t in build_schedule(settings)}
    trigger = triggers.get(name)
    if trigger is None:
        print(f"Unknown trigger: {name}")
        print(f"Known triggers: {', '.join(triggers)}")
        return 1

    print_header(f"Running {name}")
    result = await run_trigger(trigger, settings, max_jitter_seconds=0)
    if result is None:
        return 1
    if isinstance(result, asyncio.Task):
        result = await result

    print_status("Outcome", result.value)
    return 0


def print_help():
    """Print help message."""
    print(__doc__)


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    command = args[0].lower() if args else "serve"

    if command in ("help", "-h", "--help"):
        print_help()
        return

    if command not in ("serve", "schedule", "run"):
        print(f"Unknown command: {command}")
        print_help()
        sys.exit(1)

    settings = load_settings_or_exit()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    try:
        if command == "serve":
            cmd_serve(settings)
        elif command == "schedule":
            cmd_schedule(settings)
        elif command == "run":
            if len(args) < 2:
                print("Usage: wakecron run <trigger-name>")
                sys.exit(1)
            code = asyncio.run(cmd_run(settings, args[1]))
            if code:
                sys.exit(code)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
