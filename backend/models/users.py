# backend/models/users.py
from sqlalchemy import Boolean, Column, DateTime, String, func

from database import Base


# A Google-authenticated account. Admin rights live only here, never in the session token.
class User(Base):
    __tablename__ = "users"

    email = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    picture = Column(String, nullable=False, default="")
    google_id = Column(String, nullable=False, index=True)

    is_admin = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)

    last_login = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_ip = Column(String, nullable=False, default="")
    last_user_agent = Column(String, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
