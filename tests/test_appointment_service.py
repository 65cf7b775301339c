from datetime import datetime

import pytest

from salon_booking.schemas.appointment import Appointment
from salon_booking.services import appointment_service

NOW = datetime(2030, 6, 3, 12, 0)


def _appointment(appointment_id, day, time, user_id="customer-1", specialist_id="spec-1"):
    return Appointment(
        id=appointment_id,
        userId=user_id,
        specialistId=specialist_id,
        hairdresserName="Anna",
        date=day,
        time=time,
    )


def test_partition_sorts_upcoming_ascending_and_past_descending():
    appointments = [
        _appointment("a", "2030-06-05", "10:00"),
        _appointment("b", "2030-06-01", "10:00"),
        _appointment("c", "2030-06-03", "12:00"),
        _appointment("d", "2030-06-03", "11:30"),
        _appointment("e", "2030-05-20", "09:00"),
        _appointment("f", "2030-06-04", "09:00"),
    ]

    upcoming, past = appointment_service.partition_appointments(appointments, NOW)

    assert [a.id for a in upcoming] == ["c", "f", "a"]
    assert [a.id for a in past] == ["d", "b", "e"]


def test_partition_of_nothing():
    assert appointment_service.partition_appointments([], NOW) == ([], [])


async def _insert(mongo, day, time, user_id="customer-1", specialist_id="spec-1"):
    result = await mongo.appointments.insert_one({
        "userId": user_id,
        "specialistId": specialist_id,
        "hairdresserName": "Anna",
        "date": day,
        "time": time,
    })
    return str(result.inserted_id)


@pytest.mark.asyncio
async def test_user_history(mongo):
    past_id = await _insert(mongo, "2030-06-01", "10:00")
    soon_id = await _insert(mongo, "2030-06-04", "10:00")
    later_id = await _insert(mongo, "2030-06-10", "10:00")
    await _insert(mongo, "2030-06-05", "10:00", user_id="customer-2")

    history = await appointment_service.get_user_history("customer-1", now=NOW)

    assert [a.id for a in history.upcoming] == [soon_id, later_id]
    assert [a.id for a in history.past] == [past_id]


@pytest.mark.asyncio
async def test_specialist_history(mongo):
    await _insert(mongo, "2030-06-04", "10:00", specialist_id="spec-1")
    await _insert(mongo, "2030-06-04", "11:00", specialist_id="spec-2")

    history = await appointment_service.get_specialist_history("spec-2", now=NOW)

    assert [a.time for a in history.upcoming] == ["11:00"]
    assert history.past == []


@pytest.mark.asyncio
async def test_list_all_appointments_is_ordered(mongo):
    await _insert(mongo, "2030-06-04", "11:00")
    await _insert(mongo, "2030-06-04", "09:00", user_id="customer-2")
    await _insert(mongo, "2030-06-01", "15:00")

    appointments = await appointment_service.list_all_appointments()

    assert [(a.date, a.time) for a in appointments] == [
        ("2030-06-01", "15:00"),
        ("2030-06-04", "09:00"),
        ("2030-06-04", "11:00"),
    ]


@pytest.mark.asyncio
async def test_get_appointment_by_id(mongo):
    appointment_id = await _insert(mongo, "2030-06-04", "10:00")

    found = await appointment_service.get_appointment_by_id(appointment_id)

    assert found.id == appointment_id
    assert await appointment_service.get_appointment_by_id("missing") is None
