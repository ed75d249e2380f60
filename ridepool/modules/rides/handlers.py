import logging
from telegram.ext import CommandHandler, CallbackQueryHandler, ContextTypes, ConversationHandler, MessageHandler, filters
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest
from telegram.helpers import escape_markdown

from ridepool.decorators import EMPLOYEE_ID_KEY, employee_required
from ridepool.exceptions import ValidationError
from ridepool.modules.rides import display, time_utils
from ridepool.modules.rides.models import RideFilters, VehicleType
from ridepool.modules.rides.validation import MIN_PLACE_LENGTH, is_valid_employee_id, is_valid_vehicle_number

logger = logging.getLogger(__name__)

SERVICE_KEY = 'ride_service'
FILTERS_KEY = 'ride_filters'
FORM_KEY = 'ride_form'

# Состояния диалога
ASK_VEHICLE_TYPE, ASK_VEHICLE_NO, ASK_SEATS, ASK_TIME, ASK_PICKUP, ASK_DESTINATION, CONFIRM = range(7)


def get_service(context: ContextTypes.DEFAULT_TYPE):
    service = context.bot_data[SERVICE_KEY]
    service.refresh_if_stale()
    return service


def _vehicle_choices():
    return " / ".join(member.value for member in VehicleType)


def _pre(text: str) -> str:
    return f"```\n{escape_markdown(text, version=2, entity_type='pre')}\n```"


# --- Employee id -------------------------------------------------------------

async def set_employee_id(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/iam <employee id> — remembers who the user is for this chat session."""
    if not context.args:
        current = context.user_data.get(EMPLOYEE_ID_KEY)
        suffix = f" Current: {current}." if current else ""
        await update.message.reply_text(f"Usage: /iam <employee id>.{suffix}")
        return
    employee_id = context.args[0].strip()
    if not is_valid_employee_id(employee_id):
        await update.message.reply_text("Employee ID must be 1-10 letters or digits.")
        return
    context.user_data[EMPLOYEE_ID_KEY] = employee_id
    logger.info(f"Telegram user {update.effective_user.id} is employee {employee_id}")
    await update.message.reply_text(f"Hi, {employee_id}! Use /rides to find a ride or /addride to offer one.")


# --- Add ride conversation ---------------------------------------------------

@employee_required
async def addride_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data[FORM_KEY] = {}
    await update.message.reply_text(f"Let's add your ride for today.\nVehicle type? ({_vehicle_choices()})")
    return ASK_VEHICLE_TYPE


async def ask_vehicle_no(update: Update, context: ContextTypes.DEFAULT_TYPE):
    vehicle_type = VehicleType.parse(update.message.text)
    if vehicle_type is None:
        await update.message.reply_text(f"Please answer {_vehicle_choices()}.")
        return ASK_VEHICLE_TYPE
    context.user_data[FORM_KEY]['vehicleType'] = vehicle_type.value
    await update.message.reply_text("Vehicle number?")
    return ASK_VEHICLE_NO


async def ask_seats(update: Update, context: ContextTypes.DEFAULT_TYPE):
    vehicle_no = update.message.text.strip()
    if not is_valid_vehicle_number(vehicle_no):
        await update.message.reply_text("Vehicle number must be 2-15 letters, digits, spaces or dashes.")
        return ASK_VEHICLE_NO
    context.user_data[FORM_KEY]['vehicleNo'] = vehicle_no
    await update.message.reply_text("How many vacant seats do you offer?")
    return ASK_SEATS


async def ask_time(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        seats = int(update.message.text.strip())
    except ValueError:
        seats = 0
    if seats < 1:
        await update.message.reply_text("Please enter a whole number greater than 0.")
        return ASK_SEATS
    context.user_data[FORM_KEY]['vacantSeats'] = seats
    await update.message.reply_text(f"Departure time? (HH:MM, now it is {time_utils.current_time()})")
    return ASK_TIME


async def ask_pickup(update: Update, context: ContextTypes.DEFAULT_TYPE):
    depart_time = update.message.text.strip()
    if not time_utils.is_valid_time_format(depart_time):
        await update.message.reply_text("Please use the HH:MM format, for example 08:30.")
        return ASK_TIME
    context.user_data[FORM_KEY]['time'] = depart_time
    await update.message.reply_text("Pickup point?")
    return ASK_PICKUP


async def ask_destination(update: Update, context: ContextTypes.DEFAULT_TYPE):
    pickup_point = update.message.text.strip()
    if len(pickup_point) < MIN_PLACE_LENGTH:
        await update.message.reply_text("Pickup point is too short.")
        return ASK_PICKUP
    context.user_data[FORM_KEY]['pickupPoint'] = pickup_point
    await update.message.reply_text("Destination?")
    return ASK_DESTINATION


async def confirm_ride(update: Update, context: ContextTypes.DEFAULT_TYPE):
    destination = update.message.text.strip()
    if len(destination) < MIN_PLACE_LENGTH:
        await update.message.reply_text("Destination is too short.")
        return ASK_DESTINATION
    form = context.user_data[FORM_KEY]
    form['destination'] = destination
    await update.message.reply_text(
        f"Please check:\n"
        f"Vehicle: {form['vehicleType']} {form['vehicleNo']}\n"
        f"Seats: {form['vacantSeats']}\n"
        f"Time: {form['time']}\n"
        f"Route: {form['pickupPoint']} → {form['destination']}\n\n"
        f"Is everything correct? (yes/no)")
    return CONFIRM


async def save_ride(update: Update, context: ContextTypes.DEFAULT_TYPE):
    answer = update.message.text.strip().lower()
    form = context.user_data.pop(FORM_KEY, {})
    if answer not in ("yes", "y", "+"):
        await update.message.reply_text("Ride was not added.")
        return ConversationHandler.END
    employee_id = context.user_data.get(EMPLOYEE_ID_KEY)
    outcome = get_service(context).create_ride(form, employee_id)
    await update.message.reply_text(display.outcome_message(outcome, "Ride added successfully!"))
    return ConversationHandler.END


async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.pop(FORM_KEY, None)
    await update.message.reply_text("Cancelled.")
    return ConversationHandler.END


# --- Searching and booking ---------------------------------------------------

def parse_filter_args(args):
    """Turns ``/rides`` arguments (vehicle type and/or HH:MM, any order) into filter values."""
    vehicle_type, search_time = None, None
    for arg in args or []:
        parsed = VehicleType.parse(arg)
        if parsed is not None:
            vehicle_type = parsed.value
        elif time_utils.is_valid_time_format(arg):
            search_time = arg
        else:
            raise ValidationError({"filters": f"Unknown filter '{arg}'. Use {_vehicle_choices()} and/or HH:MM."})
    return {"vehicle_type": vehicle_type, "time": search_time}


def render_available_rides(service, employee_id, filter_values):
    """Returns message text and keyboard listing the rides ``employee_id`` may book."""
    rides = service.available_rides(RideFilters(employee_id=employee_id, **filter_values))
    if not rides:
        return escape_markdown("No rides available right now.", version=2), None

    buttons = [
        [InlineKeyboardButton(f"Book {ride.time} {ride.vehicle_type.value} {ride.vehicle_no}",
                              callback_data=f"ride:book:{ride.id}")]
        for ride in rides if service.can_book_ride(ride.id, employee_id)
    ]
    header = escape_markdown(f"Available rides for {time_utils.current_date()}:", version=2)
    text = f"{header}\n{_pre(display.generate_rides_table(rides))}"
    return text, InlineKeyboardMarkup(buttons) if buttons else None


@employee_required
async def show_available_rides(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        filter_values = parse_filter_args(context.args)
    except ValidationError as e:
        await update.message.reply_text("\n".join(e.errors.values()))
        return
    context.user_data[FILTERS_KEY] = filter_values
    text, markup = render_available_rides(get_service(context), context.user_data[EMPLOYEE_ID_KEY], filter_values)
    await update.message.reply_text(text, reply_markup=markup, parse_mode='MarkdownV2')


@employee_required
async def book_ride_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    ride_id = query.data.split(':', 2)[2]
    employee_id = context.user_data[EMPLOYEE_ID_KEY]
    service = get_service(context)

    outcome = service.book_ride(ride_id, employee_id)
    await query.answer(display.outcome_message(outcome, "Ride booked successfully!"), show_alert=True)

    # Refresh the list so seat counts and buttons reflect the new state.
    filter_values = context.user_data.get(FILTERS_KEY, {"vehicle_type": None, "time": None})
    text, markup = render_available_rides(service, employee_id, filter_values)
    try:
        await query.edit_message_text(text, reply_markup=markup, parse_mode='MarkdownV2')
    except BadRequest as e:
        if "not modified" not in str(e).lower():
            raise
        logger.debug(f"Ride list for {employee_id} unchanged after booking attempt")


@employee_required
async def show_my_rides(update: Update, context: ContextTypes.DEFAULT_TYPE):
    rides = get_service(context).rides_by_employee(context.user_data[EMPLOYEE_ID_KEY])
    if not rides:
        await update.message.reply_text("You have not offered a ride today. Use /addride.")
        return
    lines = []
    for ride in rides:
        passengers = ", ".join(ride.booked_employees) or "nobody yet"
        lines.append(f"{display.format_ride(ride)}\nPassengers: {passengers}")
    await update.message.reply_text("\n\n".join(lines))


@employee_required
async def show_my_bookings(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = get_service(context)
    bookings = service.bookings_by_employee(context.user_data[EMPLOYEE_ID_KEY])
    if not bookings:
        await update.message.reply_text("You have no bookings today. Use /rides.")
        return
    rides_by_id = {ride.id: ride for ride in service.rides}
    await update.message.reply_text(_pre(display.generate_bookings_table(bookings, rides_by_id)),
                                    parse_mode='MarkdownV2')


def log_state_change(rides, bookings):
    logger.info(f"Ride state changed: {len(rides)} ride(s), {len(bookings)} booking(s)")


def register_ride_handlers(application, service):
    application.bot_data[SERVICE_KEY] = service
    service.subscribe(log_state_change)

    conv_handler = ConversationHandler(
        entry_points=[CommandHandler("addride", addride_start)],
        states={
            ASK_VEHICLE_TYPE: [MessageHandler(filters.TEXT & ~filters.COMMAND, ask_vehicle_no)],
            ASK_VEHICLE_NO: [MessageHandler(filters.TEXT & ~filters.COMMAND, ask_seats)],
            ASK_SEATS: [MessageHandler(filters.TEXT & ~filters.COMMAND, ask_time)],
            ASK_TIME: [MessageHandler(filters.TEXT & ~filters.COMMAND, ask_pickup)],
            ASK_PICKUP: [MessageHandler(filters.TEXT & ~filters.COMMAND, ask_destination)],
            ASK_DESTINATION: [MessageHandler(filters.TEXT & ~filters.COMMAND, confirm_ride)],
            CONFIRM: [MessageHandler(filters.TEXT & ~filters.COMMAND, save_ride)],
        },
        fallbacks=[CommandHandler("cancel", cancel)],
    )
    application.add_handler(conv_handler)
    application.add_handler(CommandHandler("iam", set_employee_id))
    application.add_handler(CommandHandler("rides", show_available_rides))
    application.add_handler(CommandHandler("myrides", show_my_rides))
    application.add_handler(CommandHandler("mybookings", show_my_bookings))
    application.add_handler(CallbackQueryHandler(book_ride_callback, pattern="^ride:book:"))
