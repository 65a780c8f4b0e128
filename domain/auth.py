"""Domain Entities - Auth"""
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Authenticated caller; user_id is the reservation holder id"""
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool = False

    @property
    def holder_id(self) -> str:
        return str(self.user_id)


class UserCredentials(User):
    hashed_password: str
