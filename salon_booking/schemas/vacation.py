from pydantic import BaseModel, Field
from typing import Optional

class VacationStatus(BaseModel):
    active: bool = False
    upcoming: bool = False
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None
    daysUntilStart: Optional[int] = None
    daysUntilEnd: Optional[int] = None

    class Config:
        populate_by_name = True
