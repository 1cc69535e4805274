# eventops/models/meetings.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Table
from sqlalchemy.orm import relationship

from eventops.db import Base


action_item_departments = Table(
    "action_item_departments",
    Base.metadata,
    Column("action_item_id", Integer, ForeignKey("action_items.id", ondelete="CASCADE"), primary_key=True),
    Column("department_id", Integer, ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True),
)


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    action_items = relationship(
        "ActionItem",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="ActionItem.position",
    )


class ActionItem(Base):
    """
    Follow-up from a meeting, assigned to departments by id.
    """
    __tablename__ = "action_items"

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(
        Integer, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(1000), nullable=False)
    due_date = Column(DateTime, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    meeting = relationship("Meeting", back_populates="action_items")
    departments = relationship(
        "Department",
        secondary=action_item_departments,
        back_populates="action_items",
        order_by="Department.name",
    )
