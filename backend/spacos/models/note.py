"""Free-text notes attached to a target or a SPAC."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    target_id = Column(Integer, ForeignKey("targets.id"), index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), index=True)
    created_by = Column(String(255))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    target = relationship("Target")
    spac = relationship("Spac")
