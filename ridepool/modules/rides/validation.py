"""
Field validation for new ride offers.

Mirrors the checks of the add-ride form: every field is required, the
employee id and vehicle number follow a simple alphanumeric format, seats
must be a positive integer and the departure time must be "HH:MM".
"""

import re
from typing import Dict

from ridepool.exceptions import ValidationError
from ridepool.modules.rides import time_utils
from ridepool.modules.rides.models import VehicleType

EMPLOYEE_ID_PATTERN = re.compile(r"[A-Za-z0-9]{1,10}")
VEHICLE_NUMBER_PATTERN = re.compile(r"[A-Za-z0-9\- ]{2,15}")
MIN_PLACE_LENGTH = 2
MIN_SEATS = 1


def is_valid_employee_id(value) -> bool:
    return isinstance(value, str) and EMPLOYEE_ID_PATTERN.fullmatch(value) is not None


def is_valid_vehicle_number(value) -> bool:
    return isinstance(value, str) and VEHICLE_NUMBER_PATTERN.fullmatch(value) is not None


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def validate_ride_data(data: dict, employee_id: str) -> Dict:
    """
    Checks a raw ride form and returns the normalized fields.

    Args:
        data: mapping with vehicleType, vehicleNo, vacantSeats, time,
            pickupPoint and destination (camelCase, as the form sends them).
        employee_id: the offering employee.

    Returns:
        dict with employee_id, vehicle_type (VehicleType), vehicle_no,
        vacant_seats (int), time, pickup_point and destination.

    Raises:
        ValidationError: with one message per invalid field.
    """
    errors = {}
    data = data or {}

    employee_id = (employee_id or "").strip()
    if not employee_id:
        errors["employeeId"] = "Employee ID is required."
    elif not is_valid_employee_id(employee_id):
        errors["employeeId"] = "Employee ID must be 1-10 letters or digits."

    vehicle_type = VehicleType.parse(data.get("vehicleType"))
    if vehicle_type is None:
        allowed = ", ".join(member.value for member in VehicleType)
        errors["vehicleType"] = f"Vehicle type must be one of: {allowed}."

    vehicle_no = _text(data, "vehicleNo")
    if not vehicle_no:
        errors["vehicleNo"] = "Vehicle number is required."
    elif not is_valid_vehicle_number(vehicle_no):
        errors["vehicleNo"] = "Vehicle number must be 2-15 letters, digits, spaces or dashes."

    vacant_seats = None
    raw_seats = data.get("vacantSeats")
    if raw_seats is None or raw_seats == "":
        errors["vacantSeats"] = "Number of seats is required."
    else:
        try:
            if isinstance(raw_seats, bool):
                raise ValueError(raw_seats)
            vacant_seats = int(str(raw_seats).strip())
        except ValueError:
            errors["vacantSeats"] = "Number of seats must be a whole number."
        else:
            if vacant_seats < MIN_SEATS:
                errors["vacantSeats"] = f"At least {MIN_SEATS} seat must be offered."

    time = _text(data, "time")
    if not time:
        errors["time"] = "Departure time is required."
    elif not time_utils.is_valid_time_format(time):
        errors["time"] = "Departure time must be in HH:MM format."

    pickup_point = _text(data, "pickupPoint")
    if len(pickup_point) < MIN_PLACE_LENGTH:
        errors["pickupPoint"] = f"Pickup point must be at least {MIN_PLACE_LENGTH} characters."

    destination = _text(data, "destination")
    if len(destination) < MIN_PLACE_LENGTH:
        errors["destination"] = f"Destination must be at least {MIN_PLACE_LENGTH} characters."

    if errors:
        raise ValidationError(errors)

    return {
        "employee_id": employee_id,
        "vehicle_type": vehicle_type,
        "vehicle_no": vehicle_no,
        "vacant_seats": vacant_seats,
        "time": time,
        "pickup_point": pickup_point,
        "destination": destination,
    }
