"""Order model for cotações/pedidos."""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class OrderStatus(enum.Enum):
    """Order status enum."""
    COTACAO = "cotacao"
    CONFIRMADO = "confirmado"


class Order(Base):
    """
    Order (Pedido).

    Starts as a quotation (cotacao) and becomes a confirmed order
    (confirmado). Commission is only reported for confirmed orders.
    Totals are always recomputed from the items by the pricing engine.
    """

    __tablename__ = 'sales_order'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    client_id = Column(BigIntId, ForeignKey('client.id'), nullable=False)
    representative_id = Column(BigIntId, ForeignKey('representative.id'), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.COTACAO.value)
    payment_terms = Column(String(100), nullable=True)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)  # Always 0: discounts live on the items
    taxes = Column(Numeric(10, 2), nullable=False, default=0)  # Freight surcharge
    total = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    client = relationship('Client', back_populates='orders')
    representative = relationship('Representative', back_populates='orders')
    items = relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.id'
    )

    def __repr__(self):
        return f"<Order(id={self.id}, status='{self.status}', total={self.total})>"

    @property
    def is_confirmed(self):
        """Check if the order is confirmed (commission visible)."""
        return self.status == OrderStatus.CONFIRMADO.value
