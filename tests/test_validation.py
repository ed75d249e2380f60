import pytest

from ridepool.exceptions import ValidationError
from ridepool.modules.rides.models import VehicleType
from ridepool.modules.rides.validation import (
    is_valid_employee_id, is_valid_vehicle_number, validate_ride_data,
)


def test_valid_form_is_normalized(ride_form):
    form = dict(ride_form, vehicleType="bike", vacantSeats="3", pickupPoint="  Main Gate ")

    fields = validate_ride_data(form, " E1 ")

    assert fields == {
        "employee_id": "E1",
        "vehicle_type": VehicleType.BIKE,
        "vehicle_no": "KA-01 1234",
        "vacant_seats": 3,
        "time": "09:00",
        "pickup_point": "Main Gate",
        "destination": "Tech Park",
    }


def test_empty_form_reports_every_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_ride_data({}, "")

    assert set(excinfo.value.errors) == {
        "employeeId", "vehicleType", "vehicleNo", "vacantSeats", "time", "pickupPoint", "destination",
    }


@pytest.mark.parametrize("field, value", [
    ("vehicleType", "Bus"),
    ("vehicleNo", "X"),
    ("vehicleNo", "KA#01"),
    ("vacantSeats", 0),
    ("vacantSeats", -1),
    ("vacantSeats", "two"),
    ("vacantSeats", True),
    ("time", "9am"),
    ("time", "24:00"),
    ("pickupPoint", "A"),
    ("destination", " "),
])
def test_single_invalid_field(ride_form, field, value):
    with pytest.raises(ValidationError) as excinfo:
        validate_ride_data(dict(ride_form, **{field: value}), "E1")

    assert list(excinfo.value.errors) == [field]


def test_error_message_names_fields(ride_form):
    with pytest.raises(ValidationError) as excinfo:
        validate_ride_data(dict(ride_form, time="99:99"), "E1")

    assert "time" in str(excinfo.value)


@pytest.mark.parametrize("value, expected", [
    ("E1", True),
    ("EMP12345", True),
    ("", False),
    ("E 1", False),
    ("TOOLONG12345", False),
    (None, False),
])
def test_employee_id_format(value, expected):
    assert is_valid_employee_id(value) is expected


@pytest.mark.parametrize("value, expected", [
    ("KA-01 1234", True),
    ("AB", True),
    ("A", False),
    ("KA01@", False),
])
def test_vehicle_number_format(value, expected):
    assert is_valid_vehicle_number(value) is expected
