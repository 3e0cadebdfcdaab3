"""
ORM models for the SQL record store.

WHAT: SQLAlchemy models for orders (deals), sellers and seller offers
WHY: Mirror the Airtable tables so either backend serves the same engine
HOW: Declarative models with constraints, relationships, and indexes
"""

from datetime import datetime, date
from uuid import uuid4
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, DateTime, Text,
    ForeignKey, CheckConstraint, Index, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from .database import Base
from ..models.offer import TaxType


class Order(Base):
    """
    Order table - a WTB deal sellers bid on.

    WHAT: Deal with optional fallback ceiling and posted message state
    WHY: Anchor for offers and for enabling/disabling offer buttons
    HOW: String primary key so ids can match Airtable record ids
    """
    __tablename__ = "orders"

    order_id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    product_name = Column(String(200), nullable=True)
    sku = Column(String(100), nullable=True)
    size = Column(String(50), nullable=True)
    brand = Column(String(100), nullable=True)
    max_buying_price = Column(Float, nullable=True)
    offer_message_ids = Column(Text, nullable=False, default="")  # comma-separated
    buttons_disabled = Column(Boolean, nullable=False, default=False)

    offers = relationship("SellerOffer", back_populates="order")

    def __repr__(self):
        return f"<Order(order_id={self.order_id}, product={self.product_name})>"


class Seller(Base):
    """Seller directory entry, looked up by seller code (SE-00001)."""
    __tablename__ = "sellers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    seller_code = Column(String(50), nullable=False, unique=True)
    name = Column(String(100), nullable=True)
    discord_user_id = Column(String(32), nullable=True)

    offers = relationship("SellerOffer", back_populates="seller")

    def __repr__(self):
        return f"<Seller(id={self.id}, code={self.seller_code})>"


class SellerOffer(Base):
    """
    SellerOffer table - one accepted bid.

    Rows are only written after validation and never updated.
    """
    __tablename__ = "seller_offers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.order_id", ondelete="SET NULL"), nullable=True)
    seller_id = Column(Integer, ForeignKey("sellers.id"), nullable=False)
    seller_offer = Column(Float, nullable=False)
    vat_type = Column(SQLEnum(TaxType), nullable=False)
    normalized_cost = Column(Float, nullable=False)
    offer_date = Column(Date, nullable=False, default=date.today)
    seller_discord_id = Column(String(32), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("seller_offer > 0", name="check_offer_positive"),
        Index("ix_seller_offers_order", "order_id"),
    )

    order = relationship("Order", back_populates="offers")
    seller = relationship("Seller", back_populates="offers")

    def __repr__(self):
        return f"<SellerOffer(id={self.id}, order={self.order_id}, price={self.seller_offer} {self.vat_type})>"
