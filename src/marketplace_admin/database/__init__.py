"""Database module for marketplace admin persistence."""

from .models import (
    Base,
    User,
    Settlement,
    Order,
    ExternalTransaction,
    SettlementStatus,
    Channel,
    OrderStatus,
    OrderPaymentStatus,
    TransactionType,
    TransactionStatus,
    utcnow,
)
from .session import (
    create_async_engine,
    get_async_session_factory,
    get_db,
    get_db_manager,
    DatabaseManager,
)
from .repository import (
    SettlementRepository,
    OrderRepository,
    ExternalTransactionRepository,
)

__all__ = [
    # Models
    "Base",
    "User",
    "Settlement",
    "Order",
    "ExternalTransaction",
    "SettlementStatus",
    "Channel",
    "OrderStatus",
    "OrderPaymentStatus",
    "TransactionType",
    "TransactionStatus",
    "utcnow",
    # Session management
    "create_async_engine",
    "get_async_session_factory",
    "get_db",
    "get_db_manager",
    "DatabaseManager",
    # Repositories
    "SettlementRepository",
    "OrderRepository",
    "ExternalTransactionRepository",
]
