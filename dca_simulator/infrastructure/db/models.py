"""
Database Models (SQLAlchemy ORM)
Assets and price history are upsert-only - NO DELETES
"""

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Index, Integer, Numeric, String, UniqueConstraint
)

from dca_simulator.infrastructure.db.database import Base
from dca_simulator.utils.time import utcnow_naive


class AssetModel(Base):
    """Tradable asset with last-known price"""
    __tablename__ = "asset"

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    current_price = Column(Numeric(24, 12), nullable=False)
    last_updated = Column(DateTime, nullable=False, default=utcnow_naive)


class PriceHistoryModel(Base):
    """One price per (symbol, calendar date)"""
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(20), nullable=False)
    date = Column(Date, nullable=False)
    price = Column(Numeric(24, 12), nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow_naive)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_price_history_symbol_date"),
        Index("ix_price_history_lookup", "symbol", "date"),
    )


class InvestmentPlanModel(Base):
    """Recurring monthly investment plan"""
    __tablename__ = "investment_plan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(20), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    monthly_amount = Column(Numeric(14, 2), nullable=False)
    investment_day = Column(Integer, nullable=False)
    allocation_percentage = Column(Numeric(5, 2), nullable=False, default=100)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow_naive)
