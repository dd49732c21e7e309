"""OrderItem model for order line items."""
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntId


class OrderItem(Base):
    """
    Order Item (Item do Pedido).

    Stores the list price at the time the product was added, the discount
    and commission rates that applied, and the rounded subtotal. The
    subtotal must always be reproducible from the other columns.
    """

    __tablename__ = 'order_item'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    order_id = Column(BigIntId, ForeignKey('sales_order.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigIntId, ForeignKey('product.id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    discount_id = Column(BigIntId, ForeignKey('discount.id'), nullable=True)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    commission = Column(Numeric(5, 2), nullable=False, default=0)  # Commission rate (%), not an amount
    subtotal = Column(Numeric(10, 2), nullable=False)
    client_ref = Column(String(100), nullable=True)

    # Relationships
    order = relationship('Order', back_populates='items')
    product = relationship('Product', foreign_keys=[product_id])
    discount = relationship('Discount', foreign_keys=[discount_id])

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id}, qty={self.quantity}, subtotal={self.subtotal})>"
