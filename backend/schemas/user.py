from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel


# Output schema for the signed-in user's profile
class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    email: EmailStr
    name: str
    picture: Optional[str] = None
    is_admin: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


# Generic status payload for auth endpoints
class AuthStatus(BaseModel):
    status: str
