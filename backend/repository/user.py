# backend/repository/user.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from models.users import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def register_login(self, *, email: str, name: str, picture: str, google_id: str,
                       ip: str, user_agent: str) -> User:
        """Create the account on first login, otherwise refresh its login details."""
        user = self.find_by_email(email)
        now = datetime.now(timezone.utc)
        if user is None:
            user = User(
                email=email, name=name, picture=picture, google_id=google_id,
                is_admin=False, is_deleted=False,
                last_login=now, last_ip=ip, last_user_agent=user_agent,
            )
            self.db.add(user)
        else:
            user.last_login = now
            user.last_ip = ip
            user.last_user_agent = user_agent
        self.db.commit()
        self.db.refresh(user)
        return user
