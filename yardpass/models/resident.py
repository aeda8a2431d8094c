from sqlalchemy import BigInteger, Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from yardpass.database import Base, UTCDateTime, utcnow

RESIDENT_ACTIVE = "active"
RESIDENT_INACTIVE = "inactive"


class Resident(Base):
    __tablename__ = "residents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    apartment_id = Column(Integer, ForeignKey("apartments.id", ondelete="CASCADE"), nullable=False, index=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    chat_id = Column(BigInteger, nullable=True)
    name = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=RESIDENT_ACTIVE)  # active|inactive, неактивный житель не создает пропуска
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    apartment = relationship("Apartment", back_populates="residents")
    passes = relationship("Pass", back_populates="resident")

    def __repr__(self):
        return f"<Resident(id={self.id}, apartment_id={self.apartment_id}, telegram_id={self.telegram_id})>"
