from sqlalchemy import Column, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from yardpass.database import Base, UTCDateTime, utcnow


class Apartment(Base):
    __tablename__ = "apartments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    building_id = Column(Integer, ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Text, nullable=False)
    floor = Column(Integer, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    building = relationship("Building", back_populates="apartments")
    residents = relationship("Resident", back_populates="apartment")
    passes = relationship("Pass", back_populates="apartment")

    # Номер квартиры уникален в пределах здания
    __table_args__ = (
        UniqueConstraint("building_id", "number", name="uq_apartment_building_number"),
    )

    def __repr__(self):
        return f"<Apartment(id={self.id}, building_id={self.building_id}, number={self.number})>"
