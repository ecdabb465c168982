"""SQLAlchemy models for the marketplace records the admin service reads."""

import uuid
import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Numeric,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class SettlementStatus(str, enum.Enum):
    """Lifecycle of a payout request."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class Channel(str, enum.Enum):
    """Business line a settlement or transaction belongs to."""
    RIDES = "RIDES"
    ECOMMERCE = "ECOMMERCE"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderPaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SETTLED = "SETTLED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class TransactionType(str, enum.Enum):
    """Gateway transaction types that take part in reconciliation."""
    ORIGINAL = "ORIGINAL"
    FEE = "FEE"
    SERVICE_FEE = "SERVICE_FEE"


class TransactionStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    PENDING = "PENDING"
    FAILED = "FAILED"


class User(Base):
    """Platform user, kept to the fields the admin screens display."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Settlement(Base):
    """A user's request to withdraw accumulated balance."""
    __tablename__ = "settlements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    channel: Mapped[str] = mapped_column(String(20), nullable=False, default=Channel.ECOMMERCE.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SettlementStatus.PENDING.value)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user: Mapped["User"] = relationship("User", lazy="raise")

    __table_args__ = (
        Index("ix_settlements_status", "status"),
        Index("ix_settlements_created_at", "created_at"),
        Index("ix_settlements_currency", "currency"),
    )


class Order(Base):
    """A commerce order between a buyer and a seller."""
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    seller_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    currency_code: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderPaymentStatus.PENDING.value)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    shipped_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    buyer: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="raise")
    seller: Mapped[Optional["User"]] = relationship("User", foreign_keys=[seller_id], lazy="raise")

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_currency_code", "currency_code"),
    )


class ExternalTransaction(Base):
    """Money movement recorded by a payment gateway."""
    __tablename__ = "external_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    currency_code: Mapped[str] = mapped_column(String(10), nullable=False)
    # Stored verbatim; values outside TransactionType are kept but not classified.
    transaction_type: Mapped[str] = mapped_column(String(30), nullable=False)
    service_type: Mapped[str] = mapped_column(String(20), nullable=False, default=Channel.ECOMMERCE.value)
    provider: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TransactionStatus.PENDING.value)

    order_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("orders.id"), nullable=True, index=True)
    ride_request_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    customer_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
    seller_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    order: Mapped[Optional["Order"]] = relationship("Order", lazy="raise")
    customer: Mapped[Optional["User"]] = relationship("User", foreign_keys=[customer_id], lazy="raise")
    seller: Mapped[Optional["User"]] = relationship("User", foreign_keys=[seller_id], lazy="raise")

    __table_args__ = (
        Index("ix_external_transactions_status", "status"),
        Index("ix_external_transactions_created_at", "created_at"),
        Index("ix_external_transactions_currency_code", "currency_code"),
    )
