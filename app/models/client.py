"""Client model."""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class Client(Base):
    """Client (cliente) company buying through a representative."""

    __tablename__ = 'client'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    cnpj = Column(String(20), nullable=False, unique=True)
    code = Column(String(64), nullable=False, unique=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    representative_id = Column(BigIntId, ForeignKey('representative.id'), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    representative = relationship('Representative', foreign_keys=[representative_id])
    orders = relationship('Order', back_populates='client')

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}', code='{self.code}')>"
