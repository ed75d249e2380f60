import pytest

from ridepool.modules.rides import display
from ridepool.modules.rides.models import Ride, RideBooking, RideOutcome, VehicleType
from ridepool.shared.utils import generate_table

# --- Test Data Fixtures ---

@pytest.fixture
def ride():
    """Provides a half-booked ride."""
    return Ride(
        id="ride_1",
        employee_id="E1",
        vehicle_type=VehicleType.CAR,
        vehicle_no="KA-01 1234",
        pickup_point="Main Gate",
        destination="Tech Park",
        time="09:00",
        original_seats=2,
        vacant_seats=1,
        date="2024-05-06",
        created_at="2024-05-06T08:00:00",
        booked_employees=("E2",),
    )


def test_generate_table_pads_columns():
    table = generate_table([["a", "bbb"], ["cc", "d"]], headers=["H1", "H2"])

    assert table.splitlines() == [
        "H1 | H2",
        "---+----",
        "a  | bbb",
        "cc | d",
    ]


def test_generate_table_empty():
    assert generate_table([]) == ""


def test_rides_table_contains_ride(ride):
    table = display.generate_rides_table([ride])

    assert "Car KA-01 1234" in table
    assert "Main Gate" in table
    assert "1/2" in table
    assert table.splitlines()[0].startswith("Time")


def test_bookings_table_handles_unknown_ride(ride):
    bookings = [
        RideBooking(ride_id="ride_1", employee_id="E2", booking_time="2024-05-06T08:10:00"),
        RideBooking(ride_id="gone", employee_id="E2", booking_time="2024-05-06T08:20:00"),
    ]

    table = display.generate_bookings_table(bookings, {"ride_1": ride})

    assert "Tech Park" in table
    assert "2024-05-06T08:20:00" in table


def test_format_ride(ride):
    text = display.format_ride(ride)

    assert text.startswith("09:00 Car KA-01 1234")
    assert "1/2 seats free" in text
    assert "by E1" in text


def test_outcome_message_success():
    assert display.outcome_message(RideOutcome(ok=True), "Booked!") == "Booked!"


def test_outcome_message_warns_when_not_saved():
    text = display.outcome_message(RideOutcome(ok=True, persisted=False), "Booked!")

    assert text.startswith("Booked!")
    assert "could not be saved" in text


@pytest.mark.parametrize("reason, snippet", [
    ("full", "full"),
    ("own_ride", "your own ride"),
    ("already_booked", "already booked"),
    ("not_found", "no longer exists"),
    ("duplicate_ride", "already have a ride"),
])
def test_outcome_message_failures(reason, snippet):
    assert snippet in display.outcome_message(RideOutcome(ok=False, reason=reason))


def test_outcome_message_lists_field_errors():
    outcome = RideOutcome(ok=False, reason="validation_failed", errors={"time": "Bad time."})

    assert "- Bad time." in display.outcome_message(outcome)
