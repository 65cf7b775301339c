from pydantic import BaseModel, Field
from typing import Optional, List, Set
from datetime import date

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

class SlotCandidate(BaseModel):
    date: str  # Format: "2024-06-03"
    time: str  # Format: "10:30"

class SlotCreate(BaseModel):
    specialistId: str
    date: str = Field(..., pattern=DATE_PATTERN)
    time: str = Field(..., pattern=TIME_PATTERN)

class Slot(BaseModel):
    id: str
    specialistId: str
    date: str
    time: str
    booked: bool = False
    userId: Optional[str] = None

class ScheduleTemplate(BaseModel):
    """Working-hours template an admin expands into slots."""
    specialistId: str
    dateFrom: date
    dateTo: date
    startTime: str = Field("10:00", pattern=TIME_PATTERN)
    endTime: str = Field("18:00", pattern=TIME_PATTERN)
    stepMinutes: Optional[int] = None  # settings.DEFAULT_SLOT_STEP_MINUTES when omitted
    weekdays: Set[int] = Field(default_factory=lambda: {1, 2, 3, 4, 5})  # 0 = Sunday

class GenerateSlotsResult(BaseModel):
    created: int
    skipped: int
    message: str
    slots: List[Slot] = []

class BulkDeleteRequest(BaseModel):
    slotIds: List[str] = Field(..., min_length=1)

class BulkDeleteResult(BaseModel):
    deleted: List[str] = []
    skippedBooked: List[str] = []
    notFound: List[str] = []
