from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Optional
from datetime import datetime


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class AdminRead(BaseModel):
    id: str
    email: str
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminSession(BaseModel):
    id: str
    email: str
    login_time: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminRead
    login_time: datetime
