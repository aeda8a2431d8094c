from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import relationship

from yardpass.database import Base, UTCDateTime, utcnow


class Building(Base):
    __tablename__ = "buildings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    apartments = relationship("Apartment", back_populates="building")
    rule = relationship("Rule", back_populates="building", uselist=False)

    def __repr__(self):
        return f"<Building(id={self.id}, name={self.name})>"
