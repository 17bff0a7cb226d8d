import logging
from functools import wraps
from typing import Optional

from telegram import Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
)

import storage
from core.formatting import HELP_TEXT, format_catch_up, format_pending
from signals.engine import ReconciliationEngine

logger = logging.getLogger(__name__)


def restricted(func):
    """
    Decorator to block unauthorized chats but reply politely.
    Only active when an authorized_chat_id is configured.
    """
    @wraps(func)
    async def wrapped(update: Update, context: ContextTypes.DEFAULT_TYPE):
        allowed = context.bot_data.get("authorized_chat_id")
        chat_id = str(update.effective_chat.id)
        if allowed and chat_id != str(allowed):
            await update.message.reply_text("🚫 You are not authorized to use this bot.")
            logger.warning("Unauthorized access attempt from %s", chat_id)
            return
        await func(update, context)
    return wrapped


def _engine(context: ContextTypes.DEFAULT_TYPE) -> ReconciliationEngine:
    return context.bot_data["engine"]


def catch_up_text(engine: ReconciliationEngine) -> str:
    primary, secondary = engine.composite.symbols
    return format_catch_up(
        engine.last_snapshot,
        engine.last_composite,
        len(engine.pending),
        primary,
        secondary,
    )


@restricted
async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    chat_id = str(update.effective_chat.id)
    previous = storage.get_recipient()
    storage.set_recipient(chat_id)
    if previous and previous != chat_id:
        logger.info("Recipient changed %s -> %s", previous, chat_id)
    else:
        logger.info("Recipient registered: %s", chat_id)

    await update.message.reply_text("✅ Notifications enabled for this chat.")
    await update.message.reply_text(catch_up_text(_engine(context)))


@restricted
async def stop(update: Update, context: ContextTypes.DEFAULT_TYPE):
    chat_id = str(update.effective_chat.id)
    if storage.get_recipient() != chat_id:
        return await update.message.reply_text("This chat is not receiving notifications.")
    storage.clear_recipient()
    logger.info("Recipient %s unregistered", chat_id)
    await update.message.reply_text("🔕 Notifications stopped. Send /start to resume.")


@restricted
async def status(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(catch_up_text(_engine(context)))


@restricted
async def pending(update: Update, context: ContextTypes.DEFAULT_TYPE):
    engine = _engine(context)
    await update.message.reply_text(
        format_pending(list(engine.pending), engine.clock(), engine.pending.timeout_seconds)
    )


@restricted
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(HELP_TEXT)


def build_application(
    token: str,
    engine: ReconciliationEngine,
    authorized_chat_id: Optional[str] = None,
) -> Application:
    app = ApplicationBuilder().token(token).build()
    app.bot_data["engine"] = engine
    app.bot_data["authorized_chat_id"] = authorized_chat_id

    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler("stop", stop))
    app.add_handler(CommandHandler("status", status))
    app.add_handler(CommandHandler("pending", pending))
    app.add_handler(CommandHandler("help", help_command))
    return app
