"""apps/main.py

Process entrypoint. Runs, on a single asyncio event loop:
  - the Telegram bot (recipient registration commands)
  - the jittered sentiment poll loop
  - the FastAPI alert webhook served by uvicorn

Stops when uvicorn receives SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial

import uvicorn

import storage
from apps.alert import Notifier
from apps.bot_listener import build_application
from apps.jobs import PollScheduler
from apps.webhook import create_app
from core.feed import fetch_ratios
from core.logging import configure_logging
from core.settings import Settings, load_settings
from signals.engine import ReconciliationEngine

logger = logging.getLogger(__name__)


async def serve(settings: Settings) -> None:
    storage.configure(settings.db_path)
    storage.init_db()

    engine = ReconciliationEngine(settings.signals)
    application = build_application(settings.bot_token, engine, settings.authorized_chat_id)
    notifier = Notifier(application.bot)

    fetch = partial(
        fetch_ratios,
        settings.feed_url,
        timeout=settings.feed_timeout_seconds,
        retries=settings.feed_retries,
    )
    poller = PollScheduler(
        engine,
        notifier,
        fetch,
        interval_seconds=settings.interval_seconds,
        jitter_seconds=settings.jitter_seconds,
    )

    web = create_app(engine, alert_path=settings.alert_path)
    server = uvicorn.Server(
        uvicorn.Config(web, host=settings.host, port=settings.port, log_config=None)
    )

    async with application:
        await application.start()
        await application.updater.start_polling()
        poller.start(run_now=True)
        logger.info(
            "Listening for alerts on http://%s:%d%s",
            settings.host, settings.port, settings.alert_path,
        )
        try:
            await server.serve()
        finally:
            poller.shutdown()
            await notifier.drain()
            await application.updater.stop()
            await application.stop()
            logger.info("Stopped.")


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_file, settings.log_level)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
