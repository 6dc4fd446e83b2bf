from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, Optional

from worktrack.models.event_log import LogType


class WorkLogParams(BaseModel):
    duration: Optional[str] = None  # e.g. "1h 30m", parsed with the user's settings
    started_at: Optional[str] = None  # in the user's date and time format
    body: Optional[str] = None
    access_level_id: Optional[int] = Field(None, ge=1)
    paused_duration: Optional[int] = Field(None, ge=0)
    custom_attributes: Optional[Dict[int, str]] = None  # attribute id -> value


class WorkLogSubmit(BaseModel):
    work_log: Optional[WorkLogParams] = None
    comment: Optional[str] = None
    notify: bool = True


class WorkLogUpdate(BaseModel):
    duration: Optional[str] = None
    started_at: Optional[str] = None
    body: Optional[str] = None
    access_level_id: Optional[int] = Field(None, ge=1)
    custom_attributes: Optional[Dict[int, str]] = None


class NotifyRequest(BaseModel):
    update_type: str = "comment"


class AuthorBasic(BaseModel):
    id: Optional[int] = None
    name: str

    model_config = {
        "from_attributes": True
    }


class WorkLogOut(BaseModel):
    id: int
    task_id: Optional[int]
    project_id: Optional[int]
    company_id: Optional[int]
    customer_id: Optional[int]
    customer_name: Optional[str] = None
    user: AuthorBasic
    access_level_id: int
    started_at: datetime
    ended_at: datetime
    duration: int
    paused_duration: int
    body: Optional[str]
    log_type: Optional[LogType]
    comment: bool
    exported: Optional[datetime] = None
    approved: Optional[bool] = None

    model_config = {
        "from_attributes": True
    }
