from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

class ContactSnapshot(BaseModel):
    """Customer contact details copied onto the appointment at booking time."""
    userName: Optional[str] = None
    userPhone: Optional[str] = None
    userEmail: Optional[str] = None

class AppointmentCreate(BaseModel):
    slotId: str
    userName: Optional[str] = None
    userPhone: Optional[str] = None
    userEmail: Optional[str] = None

class Appointment(BaseModel):
    id: str
    userId: str
    userName: Optional[str] = None
    userPhone: Optional[str] = None
    userEmail: Optional[str] = None
    specialistId: str
    hairdresserName: str
    hairdresserAddress: Optional[str] = None
    date: str
    time: str
    slotId: Optional[str] = None
    createdAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
        json_encoders = {
            datetime: lambda dt: dt.isoformat()
        }

class AppointmentHistory(BaseModel):
    upcoming: List[Appointment] = []
    past: List[Appointment] = []

class SpecialistDeletion(BaseModel):
    specialistId: str
    deletedSlots: int
    cancelledAppointments: List[Appointment] = []
