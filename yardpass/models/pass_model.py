import uuid

from sqlalchemy import Column, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from yardpass.database import Base, UTCDateTime, utcnow

STATUS_ACTIVE = "active"
STATUS_EXPIRED = "expired"
STATUS_REVOKED = "revoked"


class Pass(Base):
    __tablename__ = "passes"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    apartment_id = Column(Integer, ForeignKey("apartments.id"), nullable=False, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id"), nullable=True, index=True)

    car_plate = Column(Text, nullable=True)  # нормализованный номер, NULL для пешеходов
    guest_name = Column(Text, nullable=True)

    valid_from = Column(UTCDateTime, nullable=False)
    valid_to = Column(UTCDateTime, nullable=False)

    status = Column(Text, nullable=False, default=STATUS_ACTIVE)  # active|expired|revoked

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
    revoked_at = Column(UTCDateTime, nullable=True)
    revoked_by = Column(Text, nullable=True)  # id пользователя или "resident:<id>"

    # Relationships
    apartment = relationship("Apartment", back_populates="passes")
    resident = relationship("Resident", back_populates="passes")

    __table_args__ = (
        Index("idx_passes_status", "status"),
        Index("idx_passes_car_plate", "car_plate"),
        Index("idx_passes_resident_created", "resident_id", "created_at"),
    )

    @property
    def is_pedestrian(self) -> bool:
        return self.car_plate is None

    def __repr__(self):
        return f"<Pass(id={self.id}, apartment_id={self.apartment_id}, status={self.status})>"
