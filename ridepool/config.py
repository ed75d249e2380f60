import logging
import os
from dotenv import load_dotenv

# --- Helper to check if we are in a pytest run ---
IS_TESTING = 'PYTEST_CURRENT_TEST' in os.environ

# Enable logging
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

# Get bot token from environment variable
BOT_TOKEN = os.environ.get('BOT_TOKEN')
if not BOT_TOKEN and not IS_TESTING:
    logger.warning('Environment variable BOT_TOKEN is not set!')

# Development mode switch. Set to "true" or "1" for local polling.
DEV_MODE = os.environ.get('DEV_MODE', 'false').lower() in ('true', '1')

# URL for the web app, required for webhook setup
WEB_URL = os.environ.get('WEB_URL')
if not DEV_MODE and not WEB_URL and not IS_TESTING:
    logger.warning('Environment variable WEB_URL is not set while not in DEV_MODE!')

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///ride_data.db")

# Storage keys for the two persisted collections.
RIDES_KEY = os.getenv("RIDES_KEY", "transportRides")
BOOKINGS_KEY = os.getenv("BOOKINGS_KEY", "transportBooking")

# How far apart (in minutes) a ride and a requested time may be and still match.
TIME_BUFFER_MINUTES_STR = os.environ.get('TIME_BUFFER_MINUTES', '60')
try:
    TIME_BUFFER_MINUTES = int(TIME_BUFFER_MINUTES_STR)
except ValueError:
    TIME_BUFFER_MINUTES = 60
    logger.warning(f'Invalid TIME_BUFFER_MINUTES: {TIME_BUFFER_MINUTES_STR}, using 60')
if TIME_BUFFER_MINUTES < 0:
    logger.warning(f'Negative TIME_BUFFER_MINUTES: {TIME_BUFFER_MINUTES}, using 60')
    TIME_BUFFER_MINUTES = 60
