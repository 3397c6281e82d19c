"""
Schémas Pydantic pour les rapports de présence.
"""

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ReportResponse(BaseModel):
    id: Optional[int] = None          # None si le rapport n'a pas pu être persisté
    person_id: int
    fecha: dt.date
    year: int
    month: int
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    activity: Optional[str] = None
    is_manual: bool
    marked_by: Optional[str] = None
    justification: Optional[str] = None
    is_late: bool
    attendance_id: Optional[int] = None

    model_config = {"from_attributes": True}


class ReportStats(BaseModel):
    year: int
    month: int
    total_reports: int
    with_entry: int
    with_exit: int
    justified: int
    absences: int
    manual: int
    tardanzas: int
    reports: List[ReportResponse]


class SyncResult(BaseModel):
    synced: int
    errors: int
    skipped: int


class SyncStatus(BaseModel):
    total_attendances: int
    total_reports: int
    pending: int
    percentage: str


class FixMonthsResult(BaseModel):
    fixed: int
    errors: int
