from app.models.user import User
from app.models.therapist import Therapist, TherapistHoliday
from app.models.catalog import Package, Patient, TherapyType
from app.models.payment import Finance, Payment
from app.models.booking import Booking, BookingRequest, BookingRequestStatus, BookingSession
from app.models.counter import Counter

__all__ = [
    "User",
    "Therapist",
    "TherapistHoliday",
    "Patient",
    "Package",
    "TherapyType",
    "Payment",
    "Finance",
    "Booking",
    "BookingSession",
    "BookingRequest",
    "BookingRequestStatus",
    "Counter",
]
