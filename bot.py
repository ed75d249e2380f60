from contextlib import asynccontextmanager
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.requests import Request
from starlette.responses import PlainTextResponse, JSONResponse
from telegram.ext import Application, CommandHandler, CallbackQueryHandler
from telegram import Update

from ridepool.config import BOT_TOKEN, logger, WEB_URL, DEV_MODE
from ridepool.database import init_database
from ridepool.handlers import base
from ridepool.modules.rides.handlers import register_ride_handlers
from ridepool.modules.rides.service import RideService

# The table must exist before the engine loads today's rides from it.
init_database()
ride_service = RideService()

application = Application.builder().token(BOT_TOKEN).build()

# --- Register Handlers ---
application.add_handler(CommandHandler("start", base.start))
application.add_handler(CommandHandler("help", base.help_command))
register_ride_handlers(application, ride_service)
application.add_handler(CallbackQueryHandler(base.unrecognized_button))
application.add_error_handler(base.error_handler)


# --- Lifespan and Starlette Server Setup ---
@asynccontextmanager
async def lifespan(app: Starlette):
    """Handles bot startup and shutdown."""
    ride_service.refresh_if_stale()
    await application.initialize()
    await application.bot.set_webhook(url=f"{WEB_URL}/telegram", allowed_updates=Update.ALL_TYPES)
    logger.info("Bot initialized and webhook set.")
    yield
    logger.info("Server shutting down...")
    await application.shutdown()
    logger.info("Bot shut down.")


async def root(request: Request):
    """A simple root endpoint to confirm the server is running."""
    return PlainTextResponse("Web server is running.")


async def telegram_webhook(request: Request) -> JSONResponse:
    """Handles incoming Telegram updates by passing them to the application for direct processing."""
    update_data = await request.json()
    update = Update.de_json(data=update_data, bot=application.bot)
    await application.process_update(update)
    return JSONResponse({"ok": True})


routes = [
    Route("/", endpoint=root),
    Route("/telegram", endpoint=telegram_webhook, methods=["POST"]),
]

server = Starlette(routes=routes, lifespan=lifespan)


def main() -> None:
    """Starts the bot in polling mode for local development."""
    logger.info("Running in development mode (polling)...")
    ride_service.refresh_if_stale()
    # run_polling drives its own event loop and removes any webhook first.
    application.run_polling(allowed_updates=Update.ALL_TYPES, drop_pending_updates=False)


if __name__ == "__main__":
    if DEV_MODE:
        main()
    else:
        # For production, an ASGI server (uvicorn/gunicorn) will find the `server` object.
        logger.info("Running in production mode. This script should be run by an ASGI server like Gunicorn.")
