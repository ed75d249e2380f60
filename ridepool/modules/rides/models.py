from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from ridepool.modules.rides.time_utils import is_valid_time_format


class VehicleType(str, Enum):
    CAR = "Car"
    BIKE = "Bike"

    @classmethod
    def parse(cls, value) -> Optional["VehicleType"]:
        """Accepts a member or its value in any letter case; None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        return None


@dataclass(frozen=True)
class Ride:
    id: str
    employee_id: str
    vehicle_type: VehicleType
    vehicle_no: str
    pickup_point: str
    destination: str
    time: str
    original_seats: int
    vacant_seats: int
    date: str
    created_at: str
    booked_employees: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        # Storage keeps the camelCase names of the original records.
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "vehicleType": self.vehicle_type.value,
            "vehicleNo": self.vehicle_no,
            "pickupPoint": self.pickup_point,
            "destination": self.destination,
            "time": self.time,
            "originalSeats": self.original_seats,
            "vacantSeats": self.vacant_seats,
            "date": self.date,
            "createdAt": self.created_at,
            "bookedEmployees": list(self.booked_employees),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Ride":
        """Builds a ride from a stored record. Raises ValueError if the record is inconsistent."""
        vacant_seats = int(data["vacantSeats"])
        original_seats = int(data.get("originalSeats", vacant_seats))
        booked_employees = tuple(data.get("bookedEmployees") or ())
        if not is_valid_time_format(data["time"]):
            raise ValueError(f"invalid time {data['time']!r}")
        if vacant_seats < 0:
            raise ValueError(f"negative vacant seats ({vacant_seats})")
        if len(set(booked_employees)) != len(booked_employees):
            raise ValueError("duplicate booked employees")
        if vacant_seats != original_seats - len(booked_employees):
            raise ValueError(
                f"{vacant_seats} vacant of {original_seats} seats does not match "
                f"{len(booked_employees)} booking(s)"
            )
        return cls(
            id=data["id"],
            employee_id=data["employeeId"],
            vehicle_type=VehicleType(data["vehicleType"]),
            vehicle_no=data.get("vehicleNo", ""),
            pickup_point=data.get("pickupPoint", ""),
            destination=data.get("destination", ""),
            time=data["time"],
            original_seats=original_seats,
            vacant_seats=vacant_seats,
            date=data["date"],
            created_at=data.get("createdAt", ""),
            booked_employees=booked_employees,
        )


@dataclass(frozen=True)
class RideBooking:
    ride_id: str
    employee_id: str
    booking_time: str

    def to_dict(self) -> dict:
        return {
            "rideId": self.ride_id,
            "employeeId": self.employee_id,
            "bookingTime": self.booking_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RideBooking":
        return cls(
            ride_id=data["rideId"],
            employee_id=data["employeeId"],
            booking_time=data.get("bookingTime", ""),
        )


@dataclass
class RideFilters:
    """Search criteria for available rides. Empty values mean "any"."""
    vehicle_type: Optional[VehicleType] = None
    time: Optional[str] = None
    employee_id: Optional[str] = None


@dataclass
class RideOutcome:
    """Result of a mutating engine call, handed back to the presentation layer."""
    ok: bool
    reason: Optional[str] = None
    ride: Optional[Ride] = None
    errors: Dict[str, str] = field(default_factory=dict)
    persisted: bool = True

    def __bool__(self) -> bool:
        return self.ok


# Outcome reasons
NOT_FOUND = "not_found"
OWN_RIDE = "own_ride"
FULL = "full"
ALREADY_BOOKED = "already_booked"
DUPLICATE_RIDE = "duplicate_ride"
VALIDATION_FAILED = "validation_failed"
