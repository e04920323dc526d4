"""
SQLAlchemy Models
Database table definitions for users, portfolios, and assets

E2E Encryption Design:
  - Server is ZERO-KNOWLEDGE for position sizes.
  - quantity and cost_basis are encrypted client-side (AES-256-GCM) before
    reaching this layer and arrive as "nonce_hex:ciphertext_hex" strings.
  - Rows written before encryption existed, or while the client was locked,
    hold plain numbers in the same columns.
  - Both columns are untyped (JSON): a number or a string is stored and
    returned verbatim. The server never inspects or distinguishes them.
  - symbol stays plaintext.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, JSON, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from privatefolio.database import Base


class User(Base):
    """User model for authentication. The username doubles as the key-derivation salt."""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    # Relationships
    portfolios = relationship("Portfolio", back_populates="user", cascade="all, delete-orphan")


class Portfolio(Base):
    """Portfolio model. Owns its assets; deleting a portfolio deletes them."""
    __tablename__ = "portfolios"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    name = Column(String(100), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow,
                        nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="portfolios")
    assets = relationship("Asset", back_populates="portfolio",
                          cascade="all, delete-orphan",
                          order_by="Asset.created_at")


class Asset(Base):
    """
    Asset position within a portfolio.

    Dual-representation fields:
      quantity   — plain number (legacy) OR encrypted field string
      cost_basis — plain number (legacy) OR encrypted field string
    """
    __tablename__ = "assets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    portfolio_id = Column(Uuid(as_uuid=True), ForeignKey("portfolios.id", ondelete="CASCADE"),
                          nullable=False, index=True)
    symbol = Column(String(20), nullable=False)

    quantity = Column(JSON, nullable=False)
    cost_basis = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    # Relationships
    portfolio = relationship("Portfolio", back_populates="assets")

    __table_args__ = (
        Index("idx_portfolio_created", "portfolio_id", "created_at"),
    )
