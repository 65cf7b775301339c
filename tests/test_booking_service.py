import asyncio
from datetime import datetime

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from salon_booking.core.errors import (
    AppointmentNotFound, Forbidden, SlotUnavailable, SpecialistNotFound, StoreUnavailable
)
from salon_booking.db.mongodb import db
from salon_booking.schemas.appointment import ContactSnapshot
from salon_booking.schemas.user import Role
from salon_booking.services import booking_service, slot_service


async def _slot_document(mongo, slot_id):
    return await mongo.slots.find_one({"_id": ObjectId(slot_id)})


@pytest.mark.asyncio
async def test_book_creates_appointment_and_books_slot(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory(name="Anna", address="Main st. 1")
    slot_id = await slot_factory(specialist_id, date="2030-06-03", time="10:00")

    appointment = await booking_service.book_slot(slot_id, customer)

    assert appointment.slotId == slot_id
    assert appointment.userId == customer.id
    assert appointment.userName == customer.name
    assert appointment.userEmail == customer.email
    assert appointment.userPhone == customer.phone
    assert appointment.specialistId == specialist_id
    assert appointment.hairdresserName == "Anna"
    assert appointment.hairdresserAddress == "Main st. 1"
    assert (appointment.date, appointment.time) == ("2030-06-03", "10:00")

    slot = await _slot_document(mongo, slot_id)
    assert slot["booked"] is True
    assert slot["userId"] == customer.id
    assert await mongo.appointments.count_documents({"slotId": slot_id}) == 1


@pytest.mark.asyncio
async def test_book_uses_contact_snapshot(specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)

    appointment = await booking_service.book_slot(
        slot_id, customer, ContactSnapshot(userName="Maria", userPhone="79991234567")
    )

    assert appointment.userName == "Maria"
    assert appointment.userPhone == "79991234567"
    assert appointment.userEmail == customer.email


@pytest.mark.asyncio
async def test_snapshot_survives_specialist_edits(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory(name="Anna", address="Main st. 1")
    slot_id = await slot_factory(specialist_id)
    appointment = await booking_service.book_slot(slot_id, customer)

    await mongo.specialists.update_one(
        {"_id": ObjectId(specialist_id)}, {"$set": {"address": "New st. 2"}}
    )
    stored = await mongo.appointments.find_one({"_id": ObjectId(appointment.id)})

    assert stored["hairdresserAddress"] == "Main st. 1"


@pytest.mark.asyncio
async def test_booking_conflict(mongo, specialist_factory, slot_factory, customer, other_customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)

    await booking_service.book_slot(slot_id, customer)
    with pytest.raises(SlotUnavailable):
        await booking_service.book_slot(slot_id, other_customer)

    slot = await _slot_document(mongo, slot_id)
    assert slot["userId"] == customer.id
    assert await mongo.appointments.count_documents({}) == 1


@pytest.mark.asyncio
async def test_double_submission_is_rejected(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)

    await booking_service.book_slot(slot_id, customer)
    with pytest.raises(SlotUnavailable):
        await booking_service.book_slot(slot_id, customer)

    assert await mongo.appointments.count_documents({}) == 1


@pytest.mark.asyncio
async def test_concurrent_bookings_only_one_wins(mongo, specialist_factory, slot_factory, caller_factory):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    callers = [caller_factory(f"customer-{i}") for i in range(5)]

    results = await asyncio.gather(
        *(booking_service.book_slot(slot_id, c) for c in callers),
        return_exceptions=True
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 4
    assert all(isinstance(f, SlotUnavailable) for f in failures)

    slot = await _slot_document(mongo, slot_id)
    assert slot["booked"] is True
    assert slot["userId"] == successes[0].userId
    assert await mongo.appointments.count_documents({"slotId": slot_id}) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.SPECIALIST, Role.ADMIN])
async def test_only_customers_can_book(mongo, specialist_factory, slot_factory, caller_factory, role):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)

    with pytest.raises(Forbidden):
        await booking_service.book_slot(slot_id, caller_factory("someone", role=role))

    assert (await _slot_document(mongo, slot_id))["booked"] is False
    assert await mongo.appointments.count_documents({}) == 0


@pytest.mark.asyncio
async def test_book_missing_slot(customer):
    with pytest.raises(SlotUnavailable):
        await booking_service.book_slot(str(ObjectId()), customer)
    with pytest.raises(SlotUnavailable):
        await booking_service.book_slot("bogus", customer)


@pytest.mark.asyncio
async def test_book_slot_inside_vacation(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory(vacation={"from": "2030-06-01", "to": "2030-06-10"})
    slot_id = await slot_factory(specialist_id, date="2030-06-05")

    with pytest.raises(SlotUnavailable):
        await booking_service.book_slot(slot_id, customer)

    assert (await _slot_document(mongo, slot_id))["booked"] is False


class _FailingAppointments:
    async def insert_one(self, *args, **kwargs):
        raise PyMongoError("connection reset")


class _DatabaseWithFailingAppointments:
    def __init__(self, real):
        self._real = real

    def __getattr__(self, name):
        if name == "appointments":
            return _FailingAppointments()
        return getattr(self._real, name)


@pytest.mark.asyncio
async def test_failed_appointment_insert_releases_slot(mongo, monkeypatch, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    monkeypatch.setattr(db, "db", _DatabaseWithFailingAppointments(mongo))

    with pytest.raises(StoreUnavailable):
        await booking_service.book_slot(slot_id, customer)

    slot = await _slot_document(mongo, slot_id)
    assert slot["booked"] is False
    assert "userId" not in slot


@pytest.mark.asyncio
async def test_cancel_is_idempotent(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    appointment = await booking_service.book_slot(slot_id, customer)

    cancelled = await booking_service.cancel_appointment(appointment.id, customer)
    assert cancelled.id == appointment.id
    assert (await _slot_document(mongo, slot_id))["booked"] is False

    with pytest.raises(AppointmentNotFound):
        await booking_service.cancel_appointment(appointment.id, customer)
    assert (await _slot_document(mongo, slot_id))["booked"] is False


@pytest.mark.asyncio
async def test_book_then_cancel_restores_slot(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    before = await _slot_document(mongo, slot_id)

    appointment = await booking_service.book_slot(slot_id, customer)
    await booking_service.cancel_appointment(appointment.id, customer)

    assert await _slot_document(mongo, slot_id) == before
    assert await mongo.appointments.count_documents({}) == 0


@pytest.mark.asyncio
async def test_cancelled_slot_can_be_booked_again(specialist_factory, slot_factory, customer, other_customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)

    appointment = await booking_service.book_slot(slot_id, customer)
    await booking_service.cancel_appointment(appointment.id, customer)
    rebooked = await booking_service.book_slot(slot_id, other_customer)

    assert rebooked.userId == other_customer.id


@pytest.mark.asyncio
async def test_cancel_tolerates_missing_slot(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    appointment = await booking_service.book_slot(slot_id, customer)
    await mongo.slots.delete_one({"_id": ObjectId(slot_id)})

    await booking_service.cancel_appointment(appointment.id, customer)

    assert await mongo.appointments.count_documents({}) == 0


@pytest.mark.asyncio
async def test_cancel_appointment_without_slot(mongo, customer):
    result = await mongo.appointments.insert_one({
        "userId": customer.id,
        "specialistId": "spec-1",
        "hairdresserName": "Anna",
        "date": "2030-06-03",
        "time": "10:00",
    })

    cancelled = await booking_service.cancel_appointment(str(result.inserted_id), customer)

    assert cancelled.slotId is None


@pytest.mark.asyncio
async def test_cancel_missing_appointment(customer):
    with pytest.raises(AppointmentNotFound):
        await booking_service.cancel_appointment(str(ObjectId()), customer)


@pytest.mark.asyncio
async def test_other_customer_cannot_cancel(mongo, specialist_factory, slot_factory, customer, other_customer):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    appointment = await booking_service.book_slot(slot_id, customer)

    with pytest.raises(Forbidden):
        await booking_service.cancel_appointment(appointment.id, other_customer)

    assert await mongo.appointments.count_documents({}) == 1
    assert (await _slot_document(mongo, slot_id))["booked"] is True


@pytest.mark.asyncio
async def test_specialist_and_admin_can_cancel(mongo, specialist_factory, slot_factory, customer, admin, caller_factory):
    specialist_id = await specialist_factory()
    first_slot = await slot_factory(specialist_id, time="10:00")
    second_slot = await slot_factory(specialist_id, time="11:00")
    first = await booking_service.book_slot(first_slot, customer)
    second = await booking_service.book_slot(second_slot, customer)

    await booking_service.cancel_appointment(first.id, caller_factory(specialist_id, role=Role.SPECIALIST))
    await booking_service.cancel_appointment(second.id, admin)

    assert await mongo.appointments.count_documents({}) == 0
    assert len(await slot_service.list_available_slots(specialist_id)) == 2


@pytest.mark.asyncio
async def test_other_specialist_cannot_cancel(specialist_factory, slot_factory, customer, caller_factory):
    specialist_id = await specialist_factory()
    slot_id = await slot_factory(specialist_id)
    appointment = await booking_service.book_slot(slot_id, customer)

    with pytest.raises(Forbidden):
        await booking_service.cancel_appointment(
            appointment.id, caller_factory("another-specialist", role=Role.SPECIALIST)
        )


@pytest.mark.asyncio
async def test_delete_specialist_cascades(mongo, specialist_factory, slot_factory, customer):
    specialist_id = await specialist_factory()
    past_slot = await slot_factory(specialist_id, date="2020-01-10")
    future_slot = await slot_factory(specialist_id, date="2030-06-03")
    await slot_factory(specialist_id, date="2030-06-04")
    await mongo.slots.update_one(
        {"_id": ObjectId(past_slot)}, {"$set": {"booked": True, "userId": customer.id}}
    )
    past = await mongo.appointments.insert_one({
        "userId": customer.id,
        "specialistId": specialist_id,
        "hairdresserName": "Anna",
        "date": "2020-01-10",
        "time": "10:00",
        "slotId": past_slot,
    })
    upcoming = await booking_service.book_slot(future_slot, customer)

    result = await booking_service.delete_specialist(specialist_id, now=datetime(2025, 1, 1))

    assert result.deletedSlots == 3
    assert [a.id for a in result.cancelledAppointments] == [upcoming.id]
    assert await mongo.slots.count_documents({"specialistId": specialist_id}) == 0
    assert await mongo.specialists.count_documents({}) == 0
    remaining = await mongo.appointments.find({}).to_list(length=None)
    assert [a["_id"] for a in remaining] == [past.inserted_id]


@pytest.mark.asyncio
async def test_delete_unknown_specialist():
    with pytest.raises(SpecialistNotFound):
        await booking_service.delete_specialist(str(ObjectId()))
