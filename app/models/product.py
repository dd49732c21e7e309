"""Product model."""
from sqlalchemy import Column, String, Text, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class Product(Base):
    """Catalog product (produto) with its authoritative list price."""

    __tablename__ = 'product'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    code = Column(String(64), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    barcode = Column(String(64), nullable=True)
    category = Column(String(100), nullable=True)
    brand = Column(String(100), nullable=True)
    conversion = Column(String(100), nullable=True)  # Cross-reference code of an equivalent part
    price = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, code='{self.code}', price={self.price})>"
