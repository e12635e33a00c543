# healthtrack/db/models/users/user.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime
from datetime import datetime
import uuid

from ....application.identity import UserRole
from ....utils import utcnow

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    name: str = Field(max_length=100)
    surname: str = Field(max_length=100, default="")
    role: str = Field(max_length=20, default=UserRole.PATIENT.value, index=True)
    phone: Optional[str] = Field(max_length=30, default=None)
    profile_picture: Optional[str] = Field(max_length=255, default=None)
    # naive UTC, see utils.utcnow
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
