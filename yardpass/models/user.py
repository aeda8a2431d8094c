import uuid
from sqlalchemy import Column, Text, Integer, ForeignKey
from sqlalchemy.orm import relationship

from yardpass.database import Base

ROLE_GUARD = "guard"
ROLE_ADMIN = "admin"
ROLE_SUPERUSER = "superuser"

ROLES = (ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER)


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(Text, unique=True, nullable=False, index=True)
    email = Column(Text, unique=True, nullable=True, index=True)
    full_name = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default=ROLE_GUARD)  # guard|admin|superuser
    # Здание, к которому привязан охранник или администратор (у superuser пусто)
    building_id = Column(Integer, ForeignKey("buildings.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Integer, nullable=False, default=1)
    created_at = Column(Text, nullable=False)

    # Relationships
    building = relationship("Building")

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
