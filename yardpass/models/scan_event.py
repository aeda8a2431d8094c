from sqlalchemy import Column, Index, Integer, Text
from sqlalchemy.orm import relationship

from yardpass.database import Base, UTCDateTime, utcnow

RESULT_VALID = "valid"
RESULT_INVALID = "invalid"


class ScanEvent(Base):
    __tablename__ = "scan_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Ссылка на пропуск без FK: попытки с несуществующим ID тоже пишутся
    pass_id = Column(Text, nullable=True, index=True)
    guard_user_id = Column(Text, nullable=True, index=True)
    scanned_at = Column(UTCDateTime, nullable=False, default=utcnow)
    result = Column(Text, nullable=False)  # valid|invalid
    reason = Column(Text, nullable=False, default="")
    meta = Column(Text, nullable=True)  # JSON

    # Relationships
    pass_ = relationship(
        "Pass",
        primaryjoin="foreign(ScanEvent.pass_id) == Pass.id",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_scan_events_scanned_at", "scanned_at"),
    )

    def __repr__(self):
        return f"<ScanEvent(id={self.id}, pass_id={self.pass_id}, result={self.result}, reason={self.reason})>"
