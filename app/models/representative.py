"""Sales representative model."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class Representative(Base):
    """Sales representative (representante) credited with order commissions."""

    __tablename__ = 'representative'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    orders = relationship('Order', back_populates='representative')

    def __repr__(self):
        return f"<Representative(id={self.id}, name='{self.name}')>"
