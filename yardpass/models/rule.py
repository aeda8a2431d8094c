from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from yardpass.database import Base, UTCDateTime, utcnow

DEFAULT_DAILY_PASS_LIMIT = 5
DEFAULT_MAX_PASS_DURATION_HOURS = 24


class Rule(Base):
    __tablename__ = "rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    building_id = Column(Integer, ForeignKey("buildings.id", ondelete="CASCADE"), unique=True, nullable=False)
    quiet_hours_start = Column(Text, nullable=True)  # HH:MM, локальное время здания
    quiet_hours_end = Column(Text, nullable=True)  # HH:MM
    daily_pass_limit = Column(Integer, nullable=False, default=DEFAULT_DAILY_PASS_LIMIT)
    max_pass_duration_hours = Column(Integer, nullable=False, default=DEFAULT_MAX_PASS_DURATION_HOURS)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    building = relationship("Building", back_populates="rule")

    def __repr__(self):
        return f"<Rule(building_id={self.building_id}, daily_pass_limit={self.daily_pass_limit})>"
