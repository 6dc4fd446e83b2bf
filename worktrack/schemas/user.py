from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    company_id: Optional[int] = None
    access_level_id: int
    is_active: bool
    created_at: datetime

    model_config = {
        "from_attributes": True
    }
