from typing import Dict, Any, List, Optional, Set
from salon_booking.db.mongodb import db
from salon_booking.core.config import settings
from salon_booking.core.errors import (
    SlotAlreadyExists, SlotInUse, SlotNotFound, translate_store_errors
)
from salon_booking.schemas.slot import (
    BulkDeleteResult, GenerateSlotsResult, ScheduleTemplate, Slot, SlotCandidate, SlotCreate
)
from salon_booking.services.schedule_generator import generate_slots, slot_key
from salon_booking.services.specialist_service import require_specialist, to_object_id
from salon_booking.services.vacation import get_vacation_status, is_day_in_vacation
from datetime import date
from pymongo import ReturnDocument
from bson import ObjectId
from pymongo.errors import BulkWriteError, DuplicateKeyError
import logging

logger = logging.getLogger(__name__)

DUPLICATE_KEY_ERROR = 11000

def _to_slot(document: Dict[str, Any]) -> Slot:
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    data["booked"] = bool(data.get("booked", False))
    return Slot(**data)

def _sort_key(slot: Slot):
    return (slot.date, slot.time)

@translate_store_errors
async def get_slot_by_id(slot_id: str) -> Optional[Slot]:
    """
    Get a slot by ID
    """
    object_id = to_object_id(slot_id)
    if object_id is None:
        return None
    slot = await db.db.slots.find_one({"_id": object_id})
    if not slot:
        return None
    return _to_slot(slot)

@translate_store_errors
async def list_slots(specialist_id: str, booked: Optional[bool] = None) -> List[Slot]:
    """
    Get all slots of a specialist, optionally filtered by booked state
    """
    query = {"specialistId": specialist_id}
    if booked is not None:
        query["booked"] = booked

    cursor = db.db.slots.find(query).sort([("date", 1), ("time", 1)])
    return [_to_slot(doc) for doc in await cursor.to_list(length=None)]

async def list_available_slots(specialist_id: str) -> List[Slot]:
    """
    Get unbooked slots of a specialist.

    Vacation filtering is not applied here since slots may predate a vacation;
    use list_bookable_slots for what a client may actually pick.
    """
    return await list_slots(specialist_id, booked=False)

async def list_bookable_slots(
    specialist_id: str,
    today: Optional[date] = None,
    slot_date: Optional[str] = None
) -> List[Slot]:
    """
    Get slots a client can book: unbooked, not in the past and outside
    the specialist's vacation window. Nothing is bookable while the
    specialist's vacation is active.
    """
    specialist = await require_specialist(specialist_id)
    today = today or date.today()

    if get_vacation_status(specialist.vacation, today).active:
        return []

    today_iso = today.isoformat()
    slots = [
        slot for slot in await list_available_slots(specialist_id)
        if slot.date >= today_iso
        and not is_day_in_vacation(specialist.vacation, slot.date)
        and (slot_date is None or slot.date == slot_date)
    ]
    slots.sort(key=_sort_key)
    return slots

async def list_available_dates(specialist_id: str, today: Optional[date] = None) -> List[str]:
    """
    Get the sorted days on which a specialist has bookable slots
    """
    slots = await list_bookable_slots(specialist_id, today=today)
    return sorted({slot.date for slot in slots})

@translate_store_errors
async def get_existing_slot_keys(specialist_id: str) -> Set[str]:
    cursor = db.db.slots.find({"specialistId": specialist_id}, {"date": 1, "time": 1})
    documents = await cursor.to_list(length=None)
    return {slot_key(doc["date"], doc["time"]) for doc in documents}

@translate_store_errors
async def create_slot(slot_in: SlotCreate) -> Slot:
    """
    Create a single free slot

    Raises:
        SpecialistNotFound: If the specialist does not exist
        SlotAlreadyExists: If the specialist already has a slot at this date and time
    """
    await require_specialist(slot_in.specialistId)

    existing = await db.db.slots.find_one({
        "specialistId": slot_in.specialistId,
        "date": slot_in.date,
        "time": slot_in.time
    })
    if existing:
        raise SlotAlreadyExists()

    slot_data = slot_in.dict()
    slot_data["booked"] = False
    try:
        result = await db.db.slots.insert_one(slot_data)
    except DuplicateKeyError:
        raise SlotAlreadyExists()

    created = await db.db.slots.find_one({"_id": result.inserted_id})
    return _to_slot(created)

@translate_store_errors
async def create_slots(specialist_id: str, candidates: List[SlotCandidate]) -> List[Slot]:
    """
    Batch-create free slots for a specialist.

    Candidates that collide with a slot created concurrently are skipped;
    only the slots actually inserted are returned.
    """
    if not candidates:
        return []

    documents = [
        {"_id": ObjectId(), "specialistId": specialist_id, "date": c.date, "time": c.time, "booked": False}
        for c in candidates
    ]
    inserted_ids = [doc["_id"] for doc in documents]

    try:
        await db.db.slots.insert_many(documents, ordered=False)
    except BulkWriteError as e:
        write_errors = e.details.get("writeErrors", [])
        if not write_errors or any(error.get("code") != DUPLICATE_KEY_ERROR for error in write_errors):
            raise
        duplicates = {error["index"] for error in write_errors}
        inserted_ids = [oid for index, oid in enumerate(inserted_ids) if index not in duplicates]
        logger.warning(
            f"{len(duplicates)} slots of specialist {specialist_id} were created concurrently, skipped"
        )

    if not inserted_ids:
        return []

    cursor = db.db.slots.find({"_id": {"$in": inserted_ids}})
    slots = [_to_slot(doc) for doc in await cursor.to_list(length=None)]
    slots.sort(key=_sort_key)
    return slots

async def generate_schedule(template: ScheduleTemplate) -> GenerateSlotsResult:
    """
    Generate and store slots for a specialist from a working-hours template.

    Days inside the specialist's vacation and slots that already exist are
    skipped, so running the same template twice creates nothing new.
    """
    specialist = await require_specialist(template.specialistId)
    existing_keys = await get_existing_slot_keys(specialist.id)

    step = template.stepMinutes
    if step is None:
        step = settings.DEFAULT_SLOT_STEP_MINUTES

    template_args = (
        specialist.id,
        template.dateFrom,
        template.dateTo,
        template.startTime,
        template.endTime,
        step,
        template.weekdays,
    )
    candidates = generate_slots(
        *template_args, existing_slot_keys=existing_keys, vacation=specialist.vacation
    )
    covered = len(generate_slots(*template_args, vacation=specialist.vacation))

    # Slots created concurrently by another generation are skipped by create_slots
    slots = await create_slots(specialist.id, candidates)
    skipped = covered - len(slots)

    if not slots:
        logger.info(f"No new slots generated for specialist {specialist.id}")
        return GenerateSlotsResult(
            created=0,
            skipped=skipped,
            message="No new slots under these conditions"
        )

    logger.info(f"Generated {len(slots)} slots for specialist {specialist.id}")
    return GenerateSlotsResult(
        created=len(slots),
        skipped=skipped,
        message=f"Created {len(slots)} slots",
        slots=slots
    )

@translate_store_errors
async def delete_slot(slot_id: str) -> None:
    """
    Delete a free slot

    Raises:
        SlotNotFound: If the slot does not exist
        SlotInUse: If the slot is booked
    """
    object_id = to_object_id(slot_id)
    if object_id is None:
        raise SlotNotFound()

    # Only a free slot matches, so a concurrent booking cannot be deleted
    result = await db.db.slots.delete_one({"_id": object_id, "booked": {"$ne": True}})
    if result.deleted_count:
        logger.info(f"Slot {slot_id} deleted")
        return

    if await db.db.slots.find_one({"_id": object_id}):
        logger.warning(f"Refused to delete booked slot {slot_id}")
        raise SlotInUse()
    raise SlotNotFound()

async def delete_slots(slot_ids: List[str]) -> BulkDeleteResult:
    """
    Delete several slots one by one, reporting booked and missing ones
    instead of failing the whole batch
    """
    result = BulkDeleteResult()
    for slot_id in slot_ids:
        try:
            await delete_slot(slot_id)
            result.deleted.append(slot_id)
        except SlotInUse:
            result.skippedBooked.append(slot_id)
        except SlotNotFound:
            result.notFound.append(slot_id)
    return result

@translate_store_errors
async def delete_all_for_specialist(specialist_id: str) -> int:
    """
    Delete every slot of a specialist, booked ones included.
    Only used when the specialist itself is deleted.
    """
    result = await db.db.slots.delete_many({"specialistId": specialist_id})
    logger.info(f"Deleted {result.deleted_count} slots of specialist {specialist_id}")
    return result.deleted_count

@translate_store_errors
async def mark_slot_booked(slot_id: str, user_id: str) -> Optional[Slot]:
    """
    Atomically flip a free slot to booked.

    Returns:
        The booked slot, or None if the slot is missing or already booked
    """
    object_id = to_object_id(slot_id)
    if object_id is None:
        return None

    slot = await db.db.slots.find_one_and_update(
        {"_id": object_id, "booked": False},
        {"$set": {"booked": True, "userId": user_id}},
        return_document=ReturnDocument.AFTER
    )
    if not slot:
        return None
    return _to_slot(slot)

@translate_store_errors
async def release_slot(slot_id: str) -> bool:
    """
    Return a slot to the free state.

    Returns:
        False if the slot no longer exists
    """
    object_id = to_object_id(slot_id)
    if object_id is None:
        return False

    result = await db.db.slots.update_one(
        {"_id": object_id},
        {"$set": {"booked": False}, "$unset": {"userId": ""}}
    )
    return result.matched_count > 0
