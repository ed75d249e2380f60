from functools import wraps
from telegram import Update
from telegram.ext import ContextTypes

from ridepool.config import logger

EMPLOYEE_ID_KEY = 'employee_id'


def employee_required(func):
    """Decorator that makes sure the user has introduced themselves with /iam first."""
    @wraps(func)
    async def wrapped(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        employee_id = context.user_data.get(EMPLOYEE_ID_KEY)
        if not employee_id:
            user_id = update.effective_user.id if update.effective_user else None
            logger.info(f"User {user_id} has no employee id yet.")
            if update.callback_query:
                await update.callback_query.answer("Please set your employee ID first: /iam <id>", show_alert=True)
            elif update.effective_message:
                await update.effective_message.reply_text("Please set your employee ID first: /iam <id>")
            return None
        return await func(update, context, *args, **kwargs)
    return wrapped
