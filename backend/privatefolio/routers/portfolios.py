"""
Portfolio Routes
CRUD operations for portfolios and their E2E encrypted asset positions.

Zero-Knowledge Principle:
  This router is a dumb storage layer for asset values.
  It NEVER decrypts, parses or sums quantity / cost_basis.

  What the server stores per asset:
    - symbol      → plaintext (needed for display and price lookup)
    - quantity    → number OR "nonce:ciphertext" string, verbatim
    - cost_basis  → number OR "nonce:ciphertext" string, verbatim

  Aggregate value is computed client-side after decryption.
"""

import logging
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from privatefolio.database import get_db
from privatefolio.models import User, Portfolio, Asset
from privatefolio.dependencies import get_current_user, get_owned_portfolio
from privatefolio.schemas import (
    PortfolioCreate,
    PortfolioResponse,
    PortfolioDetail,
    AssetCreate,
    AssetResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolios", tags=["Portfolios"])


# ────────────────────────────────────────────────────────────────────
# PORTFOLIOS
# ────────────────────────────────────────────────────────────────────

@router.get("", response_model=List[PortfolioResponse])
async def get_portfolios(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all portfolios of the authenticated user, newest first."""
    portfolios = db.query(Portfolio).filter(
        Portfolio.user_id == current_user.id
    ).order_by(Portfolio.created_at.desc()).all()

    logger.info(f"Fetched {len(portfolios)} portfolios for user {current_user.id}")
    return portfolios


@router.post("", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    portfolio_data: PortfolioCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new, empty portfolio."""
    new_portfolio = Portfolio(
        user_id=current_user.id,
        name=portfolio_data.name,
        currency=portfolio_data.currency
    )

    db.add(new_portfolio)
    db.commit()
    db.refresh(new_portfolio)

    logger.info(f"Created portfolio '{new_portfolio.name}' ({new_portfolio.id}) for user {current_user.id}")
    return new_portfolio


@router.get("/{portfolio_id}", response_model=PortfolioDetail)
async def get_portfolio(portfolio: Portfolio = Depends(get_owned_portfolio)):
    """
    Get a portfolio with all of its assets.
    Asset values are returned exactly as stored; the client decides what is ciphertext.
    """
    logger.info(f"Fetched portfolio {portfolio.id} with {len(portfolio.assets)} assets")
    return PortfolioDetail.model_validate(portfolio)


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio(
    portfolio: Portfolio = Depends(get_owned_portfolio),
    db: Session = Depends(get_db)
):
    """Delete a portfolio and all its assets (CASCADE)."""
    portfolio_id = portfolio.id
    db.delete(portfolio)
    db.commit()

    logger.info(f"Deleted portfolio {portfolio_id}")
    return None


# ────────────────────────────────────────────────────────────────────
# ASSETS
# ────────────────────────────────────────────────────────────────────

@router.post("/{portfolio_id}/assets", response_model=AssetResponse,
             status_code=status.HTTP_201_CREATED)
async def add_asset(
    asset_data: AssetCreate,
    portfolio: Portfolio = Depends(get_owned_portfolio),
    db: Session = Depends(get_db)
):
    """
    Store a new asset position.
    Server receives { symbol, quantity, cost_basis } and stores the values as-is.
    """
    new_asset = Asset(
        portfolio_id=portfolio.id,
        symbol=asset_data.symbol,
        quantity=asset_data.quantity,
        cost_basis=asset_data.cost_basis
    )

    db.add(new_asset)
    db.commit()
    db.refresh(new_asset)

    # Never log the values themselves
    logger.info(f"Added {new_asset.symbol} ({new_asset.id}) to portfolio {portfolio.id}")
    return new_asset


@router.delete("/{portfolio_id}/assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(
    asset_id: UUID,
    portfolio: Portfolio = Depends(get_owned_portfolio),
    db: Session = Depends(get_db)
):
    """Remove a single asset position."""
    asset = db.query(Asset).filter(
        Asset.id == asset_id,
        Asset.portfolio_id == portfolio.id
    ).first()

    if not asset:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Asset not found"
        )

    db.delete(asset)
    db.commit()

    logger.info(f"Deleted asset {asset_id} from portfolio {portfolio.id}")
    return None
