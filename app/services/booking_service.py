"""
Booking transaction coordinator.

Every create/update runs Validating -> AvailabilityChecking -> Reserving ->
Committing. Availability is re-checked against the ledger right before the
write, and every conflict is collected so the caller sees all of them at once.
The partial unique index on booking_sessions backs the pre-check: a concurrent
booking that slips between check and insert surfaces as a SlotIntegrityError.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import date
from typing import Any, NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.availability import DaySummary
from app.models.booking import (
    Booking,
    BookingCreate,
    BookingRequest,
    BookingRequestStatus,
    BookingSession,
    BookingUpdate,
    SessionIn,
    can_transition,
    is_active_session_status,
    utc_now,
)
from app.models.catalog import Package, Patient, TherapyType
from app.models.payment import PAYMENT_PAID, PAYMENT_PARTIALLY_PAID, PAYMENT_PENDING, Finance, Payment
from app.models.therapist import Therapist
from app.models.user import User
from app.services import slot_catalog
from app.services.availability_service import summarize
from app.services.counter_service import (
    APPOINTMENT_COUNTER,
    PAYMENT_COUNTER,
    format_appointment_id,
    format_invoice_id,
    next_sequence,
)
from app.services.date_keys import parse_iso_date
from app.services.therapist_service import get_therapists_by_ids, list_active_therapists

logger = logging.getLogger(__name__)

SlotKey = tuple[str, str, int]  # (date, slot id, therapist id)
CapacityHook = Callable[[list[SlotKey], int], Awaitable[None]]


class RequestedSession(NamedTuple):
    date: str
    slot_id: str
    therapist_id: int
    therapy_type_id: int | None
    time: str | None
    is_checked_in: bool | None
    status: str | None

    @property
    def key(self) -> SlotKey:
        return (self.date, self.slot_id, self.therapist_id)


class SessionDelta(NamedTuple):
    to_release: list[SlotKey]
    to_reserve: list[SlotKey]


class BookingRecord(NamedTuple):
    booking: Booking
    sessions: list[BookingSession]
    patient: Patient | None
    package: Package | None
    therapy: TherapyType | None
    therapist: Therapist | None
    therapist_names: dict[int, str]
    payment: Payment | None


class PaymentCollection(NamedTuple):
    record: BookingRecord
    payment: Payment
    finance: Finance | None
    message: str


async def log_capacity_change(keys: list[SlotKey], delta: int) -> None:
    """Default capacity hook: availability is derived from the ledger, so only log."""
    action = "reserve" if delta > 0 else "release"
    logger.info("Capacity %s for %d slot(s): %s", action, len(keys), keys)


def compute_session_delta(previous: Iterable[SlotKey], requested: Iterable[SlotKey]) -> SessionDelta:
    """Sessions to release (previous - requested) and to reserve (requested - previous)."""
    prev = list(dict.fromkeys(previous))
    nxt = list(dict.fromkeys(requested))
    prev_set, next_set = set(prev), set(nxt)
    return SessionDelta(
        to_release=[k for k in prev if k not in next_set],
        to_reserve=[k for k in nxt if k not in prev_set],
    )


def _resolve_sessions(
    sessions: list[SessionIn], default_therapist: int | None, default_therapy: int | None
) -> list[RequestedSession]:
    resolved: list[RequestedSession] = []
    for s in sessions:
        slot_id = s.slot_id or s.id
        therapist_id = s.therapist_id or s.therapist or default_therapist
        if not s.date or not slot_id or not therapist_id:
            raise ValidationError(
                "Invalid session data: All sessions must have date, slotId/id, and therapistId."
            )
        if slot_catalog.get_slot(slot_id) is None:
            raise ValidationError(f"Unknown slot id: {slot_id}", slotId=slot_id)
        resolved.append(
            RequestedSession(
                date=parse_iso_date(s.date, "session date").isoformat(),
                slot_id=slot_id,
                therapist_id=therapist_id,
                therapy_type_id=s.therapy_type_id or s.therapy_type or default_therapy,
                time=s.time,
                is_checked_in=s.is_checked_in,
                status=s.status,
            )
        )

    seen: set[SlotKey] = set()
    duplicates = []
    for r in resolved:
        if r.key in seen:
            duplicates.append({"date": r.date, "slotId": r.slot_id, "therapist": r.therapist_id})
        seen.add(r.key)
    if duplicates:
        raise ValidationError("The same session is requested more than once.", duplicates=duplicates)
    return resolved


async def _load_therapists(
    session: AsyncSession, requested: list[RequestedSession]
) -> dict[int, Therapist]:
    wanted = {r.therapist_id for r in requested}
    therapists = await get_therapists_by_ids(session, wanted)
    missing = sorted(wanted - therapists.keys())
    if missing:
        raise ValidationError(
            "One or more therapist(s) referenced in sessions do not exist.", therapists=missing
        )
    return therapists


async def _require(session: AsyncSession, model, entity_id: int, name: str):
    obj = await session.get(model, entity_id)
    if obj is None:
        raise ValidationError(f"Invalid {name}", **{name: entity_id})
    return obj


def _missing_fields(payload: BookingCreate | BookingUpdate, names: list[str]) -> list[str]:
    return [n for n in names if not getattr(payload, n)]


def _discount(coupon: str | dict[str, Any] | None) -> str | None:
    if isinstance(coupon, dict):
        value = coupon.get("id") or coupon.get("_id")
        return str(value) if value else None
    return coupon or None


async def find_conflicts(
    session: AsyncSession,
    requested: list[RequestedSession],
    therapists: dict[int, Therapist],
    exempt: set[SlotKey] | None = None,
) -> tuple[list[dict[str, Any]], dict[str, dict[str, DaySummary]]]:
    """Check each non-exempt session against a fresh availability summary.

    Returns (conflicts, snapshot) where snapshot maps therapist display id to
    the per-day summaries that were consulted.
    """
    exempt = exempt or set()
    to_check = [r for r in requested if r.key not in exempt]
    if not to_check:
        return [], {}

    active_ids = {t.id for t in await list_active_therapists(session)}
    inactive = sorted(
        {therapists[r.therapist_id].display_id for r in to_check if r.therapist_id not in active_ids}
    )
    if inactive:
        raise ValidationError("Therapist(s) not active: " + ", ".join(inactive), therapists=inactive)

    dates = sorted(r.date for r in to_check)
    snapshot: dict[str, dict[str, DaySummary]] = {}
    for therapist_id in dict.fromkeys(r.therapist_id for r in to_check):
        display_id = therapists[therapist_id].display_id
        snapshot[display_id] = await summarize(session, dates[0], dates[-1], therapist_id=therapist_id)

    conflicts: list[dict[str, Any]] = []
    for r in to_check:
        display_id = therapists[r.therapist_id].display_id
        day = snapshot[display_id].get(date.fromisoformat(r.date).strftime("%d-%m-%Y"))
        if day is None:
            continue
        reason = None
        if day.is_booked(display_id, r.slot_id):
            reason = "booked"
        elif day.is_holiday(display_id, r.slot_id):
            reason = "holiday"
        if reason:
            conflicts.append(
                {
                    "date": r.date,
                    "slotId": r.slot_id,
                    "therapistId": display_id,
                    "therapist": r.therapist_id,
                    "reason": reason,
                }
            )
    return conflicts, snapshot


def _snapshot_payload(snapshot: dict[str, dict[str, DaySummary]]) -> dict[str, Any]:
    return {
        display_id: {day: summary.model_dump(by_alias=True) for day, summary in days.items()}
        for display_id, days in snapshot.items()
    }


async def _check_availability(
    session: AsyncSession,
    requested: list[RequestedSession],
    therapists: dict[int, Therapist],
    exempt: set[SlotKey] | None = None,
) -> None:
    conflicts, snapshot = await find_conflicts(session, requested, therapists, exempt)
    logger.debug("Availability snapshot: %s", _snapshot_payload(snapshot))
    if conflicts:
        logger.info("Slot conflicts detected, booking rejected: %s", conflicts)
        raise ConflictError(conflicts=conflicts, allSlotAvailabilityData=_snapshot_payload(snapshot))


async def _get_booking(session: AsyncSession, booking_id: int) -> Booking:
    booking = await session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found.", bookingId=booking_id)
    return booking


async def _load_sessions(session: AsyncSession, booking_id: int) -> list[BookingSession]:
    result = await session.execute(
        select(BookingSession)
        .where(BookingSession.booking_id == booking_id)
        .order_by(BookingSession.date, BookingSession.id)
    )
    return list(result.scalars().all())


async def get_booking_detail(session: AsyncSession, booking_id: int) -> BookingRecord:
    """Booking with patient, package, therapy, therapist, payment and sessions expanded."""
    booking = await _get_booking(session, booking_id)
    sessions = await _load_sessions(session, booking.id)
    therapist_ids = {booking.therapist_id} | {s.therapist_id for s in sessions}
    therapists = await get_therapists_by_ids(session, therapist_ids)
    users = {}
    user_ids = {t.user_id for t in therapists.values()}
    if user_ids:
        result = await session.execute(select(User).where(User.id.in_(user_ids)))
        users = {u.id: u.name for u in result.scalars().all()}
    return BookingRecord(
        booking=booking,
        sessions=sessions,
        patient=await session.get(Patient, booking.patient_id),
        package=await session.get(Package, booking.package_id),
        therapy=await session.get(TherapyType, booking.therapy_id),
        therapist=therapists.get(booking.therapist_id),
        therapist_names={t.id: users.get(t.user_id, "") for t in therapists.values()},
        payment=await session.get(Payment, booking.payment_id) if booking.payment_id else None,
    )


def _transition_request(request: BookingRequest, target: BookingRequestStatus) -> None:
    current = BookingRequestStatus(request.status)
    if not can_transition(current, target):
        raise ValidationError(
            f"Booking request already {current.value}. Cannot mark it {target.value}.",
            status=current.value,
        )
    request.status = target.value


async def reject_booking_request(session: AsyncSession, request_id: int) -> BookingRequest:
    request = await session.get(BookingRequest, request_id)
    if not request:
        raise NotFoundError("Booking request not found.", bookingRequestId=request_id)
    async with atomic(session, "reject booking request"):
        _transition_request(request, BookingRequestStatus.REJECTED)
        session.add(request)
    logger.info("Booking request %s rejected", request.request_id)
    return request


async def create_booking(
    session: AsyncSession,
    payload: BookingCreate,
    on_capacity_change: CapacityHook = log_capacity_change,
) -> BookingRecord:
    missing = _missing_fields(payload, ["package", "patient", "therapy", "therapist", "sessions"])
    if missing:
        raise ValidationError("Missing required fields", missing=missing)
    requested = _resolve_sessions(payload.sessions, payload.therapist, payload.therapy)
    therapists = await _load_therapists(session, requested)
    if payload.therapist not in therapists:
        await _require(session, Therapist, payload.therapist, "therapist")
    package = await _require(session, Package, payload.package, "package")
    await _require(session, Patient, payload.patient, "patient")
    await _require(session, TherapyType, payload.therapy, "therapy")

    await _check_availability(session, requested, therapists)

    async with atomic(session, "create booking"):
        appointment_id = format_appointment_id(await next_sequence(session, APPOINTMENT_COUNTER))
        payment = Payment(
            payment_id=format_invoice_id(await next_sequence(session, PAYMENT_COUNTER)),
            total_amount=package.total_cost,
            amount=package.total_cost,
            status=PAYMENT_PENDING,
        )
        session.add(payment)
        await session.flush()

        coupon = _discount(payload.coupon)
        booking = Booking(
            appointment_id=appointment_id,
            patient_id=payload.patient,
            package_id=payload.package,
            therapy_id=payload.therapy,
            therapist_id=payload.therapist,
            payment_id=payment.id,
            status=payload.status,
            notes=payload.notes,
            remark=payload.remark,
            channel=payload.channel,
            discount_coupon=coupon,
            discount_time=utc_now() if coupon else None,
        )
        session.add(booking)
        await session.flush()

        for r in requested:
            session.add(_new_session(booking.id, r, therapists))
        await session.flush()

        if payload.is_booking_request and payload.booking_request_id:
            request = await session.get(BookingRequest, payload.booking_request_id)
            if request:
                _transition_request(request, BookingRequestStatus.APPROVED)
                request.booking_id = booking.id
                session.add(request)
            else:
                logger.warning("Booking request %s not found for approval", payload.booking_request_id)

        await on_capacity_change([r.key for r in requested], 1)

    logger.info("Booking %s created with %d session(s)", appointment_id, len(requested))
    return await get_booking_detail(session, booking.id)


def _new_session(
    booking_id: int, r: RequestedSession, therapists: dict[int, Therapist]
) -> BookingSession:
    return BookingSession(
        booking_id=booking_id,
        date=r.date,
        slot_id=r.slot_id,
        time=r.time or "",
        therapist_id=r.therapist_id,
        therapist_display_id=therapists[r.therapist_id].display_id,
        therapy_type_id=r.therapy_type_id,
        is_checked_in=bool(r.is_checked_in),
        status=r.status,
    )


def _exempt_keys(
    previous: list[BookingSession], requested: list[RequestedSession]
) -> set[SlotKey]:
    """Keys already owned by the booking, minus kept rows being reactivated."""
    status_by_key = {r.key: r.status for r in requested}
    exempt = set()
    for s in previous:
        new_status = status_by_key.get(s.key)
        reactivated = (
            not is_active_session_status(s.status)
            and new_status is not None
            and is_active_session_status(new_status)
        )
        if not reactivated:
            exempt.add(s.key)
    return exempt


async def update_booking(
    session: AsyncSession,
    booking_id: int,
    payload: BookingUpdate,
    on_capacity_change: CapacityHook = log_capacity_change,
) -> BookingRecord:
    """Replace a booking's sessions and descriptive fields.

    Sessions whose (date, slot, therapist) is unchanged keep their row and are
    not re-checked; only net-new triples, and kept rows the payload moves from an
    inactive status back to an active one, are tested against current occupancy.
    """
    missing = _missing_fields(payload, ["package", "patient", "therapy", "sessions"])
    if missing:
        raise ValidationError("Missing required fields", missing=missing)
    booking = await _get_booking(session, booking_id)
    previous = await _load_sessions(session, booking.id)

    requested = _resolve_sessions(
        payload.sessions, payload.therapist or booking.therapist_id, payload.therapy
    )
    therapists = await _load_therapists(session, requested)
    if payload.therapist and payload.therapist not in therapists:
        await _require(session, Therapist, payload.therapist, "therapist")
    await _require(session, Package, payload.package, "package")
    await _require(session, Patient, payload.patient, "patient")
    await _require(session, TherapyType, payload.therapy, "therapy")

    await _check_availability(
        session, requested, therapists, exempt=_exempt_keys(previous, requested)
    )

    delta = compute_session_delta([s.key for s in previous], [r.key for r in requested])

    async with atomic(session, "update booking"):
        released = set(delta.to_release)
        kept: dict[SlotKey, BookingSession] = {}
        for s in previous:
            if s.key in released:
                await session.delete(s)
            else:
                kept[s.key] = s
        # Free released slots before new rows claim them
        await session.flush()

        for r in requested:
            existing = kept.get(r.key)
            if existing is None:
                session.add(_new_session(booking.id, r, therapists))
                continue
            existing.therapy_type_id = r.therapy_type_id
            existing.therapist_display_id = therapists[r.therapist_id].display_id
            if r.time is not None:
                existing.time = r.time
            if r.is_checked_in is not None:
                existing.is_checked_in = r.is_checked_in
            if r.status is not None:
                existing.status = r.status
            session.add(existing)

        booking.package_id = payload.package
        booking.patient_id = payload.patient
        booking.therapy_id = payload.therapy
        if payload.therapist:
            booking.therapist_id = payload.therapist
        for field in ("status", "notes", "remark", "channel"):
            value = getattr(payload, field)
            if value is not None:
                setattr(booking, field, value)
        coupon = _discount(payload.coupon)
        if coupon:
            booking.discount_coupon = coupon
            booking.discount_time = utc_now()
        booking.updated_at = utc_now()
        session.add(booking)
        await session.flush()

        if delta.to_release:
            await on_capacity_change(delta.to_release, -1)
        if delta.to_reserve:
            await on_capacity_change(delta.to_reserve, 1)

    logger.info(
        "Booking %s updated: %d released, %d reserved",
        booking.appointment_id,
        len(delta.to_release),
        len(delta.to_reserve),
    )
    return await get_booking_detail(session, booking.id)


async def delete_booking(
    session: AsyncSession,
    booking_id: int,
    on_capacity_change: CapacityHook = log_capacity_change,
) -> None:
    booking = await _get_booking(session, booking_id)
    sessions = await _load_sessions(session, booking.id)
    valid = [s for s in sessions if s.slot_id and s.slot_id.strip() and s.date]

    async with atomic(session, "delete booking"):
        if valid:
            await on_capacity_change([s.key for s in valid], -1)
        else:
            logger.warning("Booking %s has no valid sessions to release", booking.appointment_id)
        result = await session.execute(
            select(BookingRequest).where(BookingRequest.booking_id == booking.id)
        )
        for request in result.scalars().all():
            request.booking_id = None
            session.add(request)
        await session.flush()
        for s in sessions:
            await session.delete(s)
        await session.flush()
        await session.delete(booking)
    logger.info("Booking %s deleted", booking.appointment_id)


async def check_in(
    session: AsyncSession, booking_id: int, session_id: int
) -> tuple[BookingRecord, bool]:
    """Mark one session checked in. Returns (record, already_checked_in)."""
    booking = await _get_booking(session, booking_id)
    booked_session = await session.get(BookingSession, session_id)
    if not booked_session or booked_session.booking_id != booking.id:
        raise NotFoundError("Session not found in this booking.", sessionId=session_id)
    if booked_session.is_checked_in:
        return await get_booking_detail(session, booking.id), True
    async with atomic(session, "check in"):
        booked_session.is_checked_in = True
        session.add(booked_session)
    logger.info("Checked in session %s of booking %s", session_id, booking.appointment_id)
    return await get_booking_detail(session, booking.id), False


async def collect_payment(
    session: AsyncSession,
    booking_id: int,
    payment_type: str = "full",
    partial_amount: float | None = None,
) -> PaymentCollection:
    if payment_type not in ("full", "partial"):
        raise ValidationError("paymentType must be 'full' or 'partial'")
    booking = await _get_booking(session, booking_id)
    if not booking.payment_id:
        raise ValidationError("This booking has no associated payment record.")
    payment = await session.get(Payment, booking.payment_id)
    if not payment:
        raise NotFoundError("Associated payment not found.")

    remaining = payment.amount - (payment.amount_paid or 0)
    if payment_type == "partial" and (
        partial_amount is None or partial_amount <= 0 or partial_amount > remaining
    ):
        raise ValidationError(
            f"Partial amount to pay must be a number > 0 and <= remaining amount ({remaining}).",
            remaining=remaining,
        )

    async with atomic(session, "record payment"):
        now = utc_now()
        finance = None
        if payment_type == "partial":
            payment.amount_paid = (payment.amount_paid or 0) + partial_amount
            payment.status = PAYMENT_PARTIALLY_PAID if payment.amount_paid < payment.amount else PAYMENT_PAID
            finance = Finance(
                date=now,
                description=f"Partial Payment for Booking #{booking.appointment_id}",
                amount=partial_amount,
            )
            session.add(finance)
        else:
            payment.status = PAYMENT_PAID
            payment.amount_paid = payment.amount
            description = f"Payment for Booking #{booking.appointment_id}"
            result = await session.execute(select(Finance).where(Finance.description == description))
            finance = result.scalars().first()
            if finance is None:
                finance = Finance(date=now, description=description, amount=payment.amount)
                session.add(finance)
        payment.payment_time = now
        booking.payment_status = payment.status
        session.add(payment)
        session.add(booking)

    if payment_type == "partial":
        message = (
            "Partial payment received. Booking now fully paid."
            if payment.status == PAYMENT_PAID
            else "Partial payment received. Remaining balance is due."
        )
    else:
        message = "Payment recorded successfully."
    logger.info("Payment %s for booking %s: %s", payment.payment_id, booking.appointment_id, payment.status)
    return PaymentCollection(
        record=await get_booking_detail(session, booking.id),
        payment=payment,
        finance=finance,
        message=message,
    )
