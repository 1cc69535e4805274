# eventops/models/departments.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from eventops.db import Base
from eventops.models.types import JSONEncodedList


class Department(Base):
    """
    Event department (IT, Catering, Logistics...).

    `overseers` is a JSON array of {name, email, phone} records.
    """
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    overseers = Column(JSONEncodedList, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    documents = relationship(
        "Document",
        back_populates="department",
        cascade="all, delete-orphan",
        order_by=lambda: [Document.uploaded_at.desc(), Document.id.desc()],
    )

    # deleting a department drops its rows in action_item_departments
    action_items = relationship(
        "ActionItem",
        secondary="action_item_departments",
        back_populates="departments",
    )

    @property
    def overseer_list(self):
        return [o for o in (self.overseers or []) if isinstance(o, dict)]

    def __repr__(self) -> str:
        return f"<Department {self.name}>"


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    file_name = Column(String(1000), nullable=False)   # local path or blob URL
    content_type = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)
    department_id = Column(
        Integer, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_at = Column(DateTime, default=datetime.utcnow)

    department = relationship("Department", back_populates="documents")
