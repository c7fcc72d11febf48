from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas.booking import (
    BookingCreate,
    BookingDetail,
    BookingResponse,
    BookingUpdate,
    CheckInRequest,
    CollectPaymentRequest,
    DiscountInfo,
    FinancePublic,
    MessageResponse,
    PackagePublic,
    PartyPublic,
    PatientPublic,
    PaymentCollectionResponse,
    PaymentPublic,
    SessionPublic,
    TherapistPublic,
)
from app.core.db import get_session
from app.models.payment import Finance, Payment
from app.services import slot_catalog
from app.services.booking_service import (
    BookingRecord,
    check_in,
    collect_payment,
    create_booking,
    delete_booking,
    get_booking_detail,
    reject_booking_request,
    update_booking,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])
requests_router = APIRouter(prefix="/booking-requests", tags=["booking-requests"])


def _payment_public(p: Payment) -> PaymentPublic:
    return PaymentPublic(
        id=p.id,
        payment_id=p.payment_id,
        total_amount=p.total_amount,
        amount=p.amount,
        amount_paid=p.amount_paid or 0,
        status=p.status,
        payment_method=p.payment_method,
        payment_time=p.payment_time,
    )


def _finance_public(f: Finance | None) -> FinancePublic | None:
    if f is None:
        return None
    return FinancePublic(
        id=f.id,
        date=f.date,
        description=f.description,
        type=f.type,
        amount=f.amount,
        credit_debit_status=f.credit_debit_status,
    )


def _to_detail(record: BookingRecord) -> BookingDetail:
    """Expand a booking record into its public shape."""
    b = record.booking
    therapist = record.therapist
    return BookingDetail(
        id=b.id,
        appointment_id=b.appointment_id,
        status=b.status,
        payment_status=b.payment_status,
        notes=b.notes,
        remark=b.remark,
        channel=b.channel,
        discount_info=(
            DiscountInfo(coupon=b.discount_coupon, time=b.discount_time) if b.discount_coupon else None
        ),
        patient=(
            PatientPublic(
                id=record.patient.id,
                name=record.patient.name,
                patient_id=record.patient.patient_code,
                mobile=record.patient.mobile,
            )
            if record.patient
            else None
        ),
        package=(
            PackagePublic(
                id=record.package.id,
                name=record.package.name,
                total_sessions=record.package.total_sessions,
                total_cost=record.package.total_cost,
            )
            if record.package
            else None
        ),
        therapy=PartyPublic(id=record.therapy.id, name=record.therapy.name) if record.therapy else None,
        therapist=(
            TherapistPublic(
                id=therapist.id,
                name=record.therapist_names.get(therapist.id, ""),
                therapist_id=therapist.display_id,
            )
            if therapist
            else None
        ),
        payment=_payment_public(record.payment) if record.payment else None,
        sessions=[
            SessionPublic(
                id=s.id,
                date=s.date,
                slot_id=s.slot_id,
                label=slot_catalog.label(s.slot_id),
                time=s.time,
                therapist=s.therapist_id,
                therapist_id=s.therapist_display_id,
                therapy_type_id=s.therapy_type_id,
                is_checked_in=s.is_checked_in,
                status=s.status,
            )
            for s in record.sessions
        ],
        created_at=b.created_at,
        updated_at=b.updated_at,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_route(
    body: BookingCreate,
    session: AsyncSession = Depends(get_session),
) -> BookingResponse:
    record = await create_booking(session, body)
    return BookingResponse(booking=_to_detail(record))


# Declared before /{booking_id} so "check-in" is not parsed as an id
@router.post("/check-in", response_model=BookingResponse)
async def check_in_route(
    body: CheckInRequest,
    session: AsyncSession = Depends(get_session),
) -> BookingResponse:
    record, already = await check_in(session, body.booking_id, body.session_id)
    message = (
        "Patient already checked in for this session."
        if already
        else "Patient checked in successfully for this session."
    )
    return BookingResponse(message=message, booking=_to_detail(record))


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_route(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
) -> BookingResponse:
    record = await get_booking_detail(session, booking_id)
    return BookingResponse(booking=_to_detail(record))


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking_route(
    booking_id: int,
    body: BookingUpdate,
    session: AsyncSession = Depends(get_session),
) -> BookingResponse:
    record = await update_booking(session, booking_id, body)
    return BookingResponse(booking=_to_detail(record))


@router.delete("/{booking_id}", response_model=MessageResponse)
async def delete_booking_route(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await delete_booking(session, booking_id)
    return MessageResponse(message="Booking deleted successfully.")


@router.post("/{booking_id}/collect-payment", response_model=PaymentCollectionResponse)
async def collect_payment_route(
    booking_id: int,
    body: CollectPaymentRequest,
    session: AsyncSession = Depends(get_session),
) -> PaymentCollectionResponse:
    result = await collect_payment(session, booking_id, body.payment_type, body.partial_amount)
    return PaymentCollectionResponse(
        message=result.message,
        booking=_to_detail(result.record),
        payment=_payment_public(result.payment),
        finance=_finance_public(result.finance),
    )


@requests_router.post("/{request_id}/reject", response_model=MessageResponse)
async def reject_booking_request_route(
    request_id: int,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await reject_booking_request(session, request_id)
    return MessageResponse(message="Booking request rejected successfully.")
