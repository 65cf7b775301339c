from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import date, datetime

class VacationPeriod(BaseModel):
    """Vacation window as stored on the specialist document.

    Values are kept as raw ISO strings; unparseable values mean "no vacation".
    """
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None

    class Config:
        populate_by_name = True

    @field_validator("from_", "to", mode="before")
    @classmethod
    def stored_day(cls, value: Any) -> Optional[str]:
        # Other clients may store native dates; anything else is unusable
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            return value
        return None

class VacationUpdate(BaseModel):
    from_: date = Field(..., alias="from")
    to: date

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_order(self):
        if self.from_ > self.to:
            raise ValueError("Vacation start must not be after its end")
        return self

class SpecialistCreate(BaseModel):
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    photoUrl: Optional[str] = None
    specialization: Optional[str] = None

class SpecialistUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    photoUrl: Optional[str] = None
    specialization: Optional[str] = None

class Specialist(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    photoUrl: Optional[str] = None
    specialization: Optional[str] = None
    vacation: Optional[VacationPeriod] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
        json_encoders = {
            datetime: lambda dt: dt.isoformat()
        }

    @field_validator("vacation", mode="before")
    @classmethod
    def stored_vacation(cls, value: Any):
        if isinstance(value, (dict, VacationPeriod)):
            return value
        return None
