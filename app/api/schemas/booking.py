from datetime import datetime

from pydantic import BaseModel

from app.models.booking import BookingCreate, BookingUpdate, CamelModel, SessionIn  # noqa: F401 - request bodies


class CheckInRequest(CamelModel):
    booking_id: int
    session_id: int


class CollectPaymentRequest(CamelModel):
    payment_type: str = "full"  # full | partial
    partial_amount: float | None = None


class SessionPublic(CamelModel):
    id: int
    date: str
    slot_id: str
    label: str
    time: str
    therapist: int
    therapist_id: str
    therapy_type_id: int | None = None
    is_checked_in: bool
    status: str | None = None


class PaymentPublic(CamelModel):
    id: int
    payment_id: str
    total_amount: float
    amount: float
    amount_paid: float
    status: str
    payment_method: str
    payment_time: datetime | None = None


class FinancePublic(CamelModel):
    id: int
    date: datetime
    description: str
    type: str
    amount: float
    credit_debit_status: str


class PartyPublic(CamelModel):
    id: int
    name: str


class PatientPublic(PartyPublic):
    patient_id: str
    mobile: str = ""


class TherapistPublic(PartyPublic):
    therapist_id: str


class PackagePublic(PartyPublic):
    total_sessions: int
    total_cost: float


class DiscountInfo(CamelModel):
    coupon: str
    time: datetime | None = None


class BookingDetail(CamelModel):
    id: int
    appointment_id: str
    status: str | None = None
    payment_status: str
    notes: str | None = None
    remark: str | None = None
    channel: str | None = None
    discount_info: DiscountInfo | None = None
    patient: PatientPublic | None = None
    package: PackagePublic | None = None
    therapy: PartyPublic | None = None
    therapist: TherapistPublic | None = None
    payment: PaymentPublic | None = None
    sessions: list[SessionPublic]
    created_at: datetime
    updated_at: datetime


class BookingResponse(BaseModel):
    success: bool = True
    message: str | None = None
    booking: BookingDetail


class PaymentCollectionResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingDetail
    payment: PaymentPublic
    finance: FinancePublic | None = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
