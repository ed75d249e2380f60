# Text rendering of rides, bookings and engine outcomes for chat messages
from ridepool.shared.utils import generate_table
from ridepool.modules.rides.models import (
    ALREADY_BOOKED, DUPLICATE_RIDE, FULL, NOT_FOUND, OWN_RIDE, VALIDATION_FAILED,
)

OUTCOME_MESSAGES = {
    NOT_FOUND: "This ride no longer exists.",
    OWN_RIDE: "You cannot book your own ride.",
    FULL: "This ride is already full.",
    ALREADY_BOOKED: "You have already booked this ride.",
    DUPLICATE_RIDE: "Failed to add ride. You already have a ride for today.",
    VALIDATION_FAILED: "Some ride details are invalid.",
}


def outcome_message(outcome, success_text="Done!"):
    if outcome.ok:
        text = success_text
        if not outcome.persisted:
            text += "\n(Warning: the change could not be saved and may be lost on restart.)"
        return text
    text = OUTCOME_MESSAGES.get(outcome.reason, "Something went wrong. Please try again.")
    if outcome.errors:
        text += "\n" + "\n".join(f"- {message}" for message in outcome.errors.values())
    return text


def format_ride(ride):
    """One-line summary, as shown on a ride card."""
    return (
        f"{ride.time} {ride.vehicle_type.value} {ride.vehicle_no}: "
        f"{ride.pickup_point} → {ride.destination} "
        f"({ride.vacant_seats}/{ride.original_seats} seats free, by {ride.employee_id})"
    )


def generate_rides_table(rides):
    headers = ["Time", "Vehicle", "From", "To", "Seats", "Driver"]
    data = []
    for ride in rides:
        data.append([
            ride.time,
            f"{ride.vehicle_type.value} {ride.vehicle_no}",
            ride.pickup_point,
            ride.destination,
            f"{ride.vacant_seats}/{ride.original_seats}",
            ride.employee_id,
        ])
    return generate_table(data, headers)


def generate_bookings_table(bookings, rides_by_id):
    headers = ["Time", "Vehicle", "From", "To", "Booked at"]
    data = []
    for booking in bookings:
        ride = rides_by_id.get(booking.ride_id)
        if ride is None:
            data.append(["?", "?", "?", "?", booking.booking_time])
            continue
        data.append([
            ride.time,
            f"{ride.vehicle_type.value} {ride.vehicle_no}",
            ride.pickup_point,
            ride.destination,
            booking.booking_time,
        ])
    return generate_table(data, headers)
