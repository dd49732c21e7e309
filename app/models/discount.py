"""Discount tier model."""
from sqlalchemy import Column, String, Numeric
from app.database import Base, BigIntId


class Discount(Base):
    """
    Discount tier (desconto).

    A named (percentage, commission) pair a representative can pick for a
    line item. Deeper discounts carry lower commission rates.
    """

    __tablename__ = 'discount'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    percentage = Column(Numeric(5, 2), nullable=False)
    commission = Column(Numeric(5, 2), nullable=False)

    def __repr__(self):
        return f"<Discount(id={self.id}, name='{self.name}', percentage={self.percentage}, commission={self.commission})>"
