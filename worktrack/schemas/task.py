# worktrack/schemas/task.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List


class TaskCreate(BaseModel):
    name: str
    description: Optional[str] = None
    project_id: int
    owner_ids: List[int] = []
    watcher_ids: List[int] = []
    customer_ids: List[int] = []
    notify: bool = True


class TaskOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    project_id: int
    company_id: int
    worked_minutes: int
    created_at: datetime

    class Config:
        from_attributes = True
