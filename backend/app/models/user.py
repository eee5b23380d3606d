"""API user accounts."""

from sqlalchemy import Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "Users"

    id: Mapped[int] = mapped_column("PKID", Integer, primary_key=True)
    user_name: Mapped[str] = mapped_column("UserName", String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column("Password", String(255), nullable=False)
    admin: Mapped[int] = mapped_column("admin", SmallInteger, default=0, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.admin == 1
