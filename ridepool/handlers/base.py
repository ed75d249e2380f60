from telegram import Update
from telegram.ext import ContextTypes

from ridepool.config import logger

HELP_TEXT = (
    "This bot helps colleagues share rides for today.\n\n"
    "Commands:\n"
    "/iam <employee id> - Tell the bot who you are.\n"
    "/addride - Offer a ride for today.\n"
    "/rides [Car|Bike] [HH:MM] - Find a ride (±1 hour around the time).\n"
    "/myrides - Your ride offer and its passengers.\n"
    "/mybookings - Rides you have booked.\n"
    "/cancel - Stop adding a ride.\n"
    "/help - Show this message."
)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Sends a welcome message."""
    logger.info(f"/start command received in chat {update.effective_chat.id} (type: {update.effective_chat.type})")
    await update.message.reply_text("Hi! I coordinate carpooling for today.\n\n" + HELP_TEXT)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(HELP_TEXT)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log Errors caused by Updates."""
    logger.error(f"Update {update} caused error: {context.error}", exc_info=context.error)


async def unrecognized_button(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    logger.warning(f"Unrecognized callback_data received: '{query.data}'")
    await query.answer("I don't recognize this button. It may belong to an old message.", show_alert=True)
