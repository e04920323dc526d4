"""
Pydantic Schemas
Request/Response models for API validation

E2E note: Server cannot validate encrypted field contents (quantity, cost_basis).
Both accept a number (legacy/locked writes) or a non-empty string (encrypted
field) and are stored exactly as received. All numeric validation happens
CLIENT-SIDE before encryption.
"""

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr,
    StringConstraints, field_validator,
)
from typing import Annotated, List, Union
from datetime import datetime
from uuid import UUID


# Number or encrypted field string, stored verbatim
StoredValue = Union[
    StrictInt,
    Annotated[StrictFloat, Field(allow_inf_nan=False)],
    Annotated[StrictStr, StringConstraints(min_length=1, max_length=4096)],
]


# ════════════════════════════════════════════════════════════
# User Schemas
# ════════════════════════════════════════════════════════════

class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)


class UserCreate(UserBase):
    """Registration payload.
    username: also the salt the client uses for master-key derivation,
              so it is stored exactly as given (only surrounding whitespace rejected).
    """
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def username_not_padded(cls, v: str) -> str:
        if v != v.strip() or not v.strip():
            raise ValueError("Username cannot be empty or padded with whitespace")
        return v


class UserLogin(UserBase):
    password: str


class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime


# ════════════════════════════════════════════════════════════
# Token Schemas
# ════════════════════════════════════════════════════════════

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse   # Client needs the username to derive the master key


# ════════════════════════════════════════════════════════════
# Portfolio Schemas
# ════════════════════════════════════════════════════════════

class PortfolioCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    currency: str = Field(default="USD", min_length=3, max_length=3)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Portfolio name cannot be empty or whitespace")
        return v.strip()

    @field_validator("currency")
    @classmethod
    def currency_upper(cls, v: str) -> str:
        return v.upper()


class PortfolioResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    currency: str
    created_at: datetime


# ════════════════════════════════════════════════════════════
# Asset Schemas (E2E Encrypted)
# ════════════════════════════════════════════════════════════

class AssetCreate(BaseModel):
    """
    Add a position.
    quantity / cost_basis: encrypted field string when the client is unlocked,
                           plain number otherwise. costBasis is accepted as an alias.
    """
    symbol: str = Field(..., min_length=1, max_length=20)
    quantity: StoredValue
    cost_basis: StoredValue = Field(..., validation_alias=AliasChoices("cost_basis", "costBasis"))

    @field_validator("symbol")
    @classmethod
    def symbol_upper(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Symbol cannot be empty or whitespace")
        return v.strip().upper()


class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    portfolio_id: UUID
    symbol: str
    quantity: Union[int, float, str]
    cost_basis: Union[int, float, str]
    created_at: datetime


class PortfolioDetail(PortfolioResponse):
    """Portfolio with its assets, values exactly as stored."""
    assets: List[AssetResponse] = []
