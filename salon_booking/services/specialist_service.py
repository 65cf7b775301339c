from typing import Dict, Any, List, Optional
from salon_booking.db.mongodb import db
from salon_booking.core.errors import SpecialistNotFound, translate_store_errors
from salon_booking.schemas.specialist import (
    Specialist, SpecialistCreate, SpecialistUpdate, VacationUpdate
)
from salon_booking.services.vacation import is_specialist_on_vacation
from datetime import date, datetime
from bson import ObjectId
from bson.errors import InvalidId
import logging

logger = logging.getLogger(__name__)

def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id, returning None for malformed ids."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None

def _to_specialist(document: Dict[str, Any]) -> Specialist:
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    return Specialist(**data)

@translate_store_errors
async def create_specialist(specialist_in: SpecialistCreate) -> Specialist:
    """
    Create a new specialist profile
    """
    specialist_data = specialist_in.dict()
    specialist_data["vacation"] = None
    specialist_data["createdAt"] = datetime.utcnow()

    result = await db.db.specialists.insert_one(specialist_data)
    created = await db.db.specialists.find_one({"_id": result.inserted_id})
    logger.info(f"Specialist {result.inserted_id} created")
    return _to_specialist(created)

@translate_store_errors
async def get_specialist_by_id(specialist_id: str) -> Optional[Specialist]:
    """
    Get a specialist by ID
    """
    object_id = to_object_id(specialist_id)
    if object_id is None:
        return None
    specialist = await db.db.specialists.find_one({"_id": object_id})
    if not specialist:
        return None
    return _to_specialist(specialist)

async def require_specialist(specialist_id: str) -> Specialist:
    specialist = await get_specialist_by_id(specialist_id)
    if specialist is None:
        raise SpecialistNotFound()
    return specialist

@translate_store_errors
async def list_specialists(
    exclude_on_vacation: bool = False,
    today: Optional[date] = None
) -> List[Specialist]:
    """
    Get all specialists, optionally hiding the ones on an active vacation
    """
    cursor = db.db.specialists.find({}).sort("name", 1)
    specialists = [_to_specialist(doc) for doc in await cursor.to_list(length=None)]

    if exclude_on_vacation:
        specialists = [s for s in specialists if not is_specialist_on_vacation(s, today)]

    return specialists

@translate_store_errors
async def update_specialist(specialist_id: str, specialist_update: SpecialistUpdate) -> Specialist:
    """
    Update a specialist
    """
    specialist = await require_specialist(specialist_id)

    # Update only provided fields
    update_data = specialist_update.dict(exclude_unset=True)

    if update_data:
        update_data["updatedAt"] = datetime.utcnow()
        await db.db.specialists.update_one(
            {"_id": ObjectId(specialist.id)},
            {"$set": update_data}
        )

    return await require_specialist(specialist_id)

@translate_store_errors
async def set_vacation(specialist_id: str, vacation: VacationUpdate) -> Specialist:
    """
    Declare a vacation window for a specialist
    """
    specialist = await require_specialist(specialist_id)

    await db.db.specialists.update_one(
        {"_id": ObjectId(specialist.id)},
        {"$set": {
            "vacation": {"from": vacation.from_.isoformat(), "to": vacation.to.isoformat()},
            "updatedAt": datetime.utcnow()
        }}
    )
    logger.info(f"Vacation {vacation.from_}..{vacation.to} set for specialist {specialist_id}")

    return await require_specialist(specialist_id)

@translate_store_errors
async def clear_vacation(specialist_id: str) -> Specialist:
    """
    Remove a specialist's vacation window
    """
    specialist = await require_specialist(specialist_id)

    await db.db.specialists.update_one(
        {"_id": ObjectId(specialist.id)},
        {"$set": {"vacation": None, "updatedAt": datetime.utcnow()}}
    )

    return await require_specialist(specialist_id)
