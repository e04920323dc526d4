"""
Authentication Routes
User registration and login endpoints

E2E Key Derivation Flow:
  REGISTER / LOGIN:
    1. Client sends { username, password }
    2. Server verifies (or creates) the bcrypt hash and returns { access_token, user }
    3. Client derives masterKey = PBKDF2(password, username) LOCALLY
    4. masterKey is held in client memory for the session, never sent here

  The username is the derivation salt, so the server needs no extra
  key-related column and never sees anything that could rebuild the key.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from privatefolio.database import get_db
from privatefolio.models import User
from privatefolio.dependencies import get_current_user
from privatefolio.schemas import UserCreate, UserLogin, UserResponse, Token
from privatefolio.utils.auth import get_password_hash, verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _token_for(user: User) -> dict:
    return {
        "access_token": create_access_token(data={"sub": str(user.id)}),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user and log them in.

    Security:
    - Password hashed with bcrypt (authentication layer)
    - Nothing key-related is stored (E2EE layer is client-side only)
    """
    # Duplicate username check
    existing_user = db.query(User).filter(User.username == user_data.username).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists"
        )

    new_user = User(
        username=user_data.username,
        password_hash=get_password_hash(user_data.password)
    )
    db.add(new_user)

    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists"
        )

    db.refresh(new_user)
    logger.info(f"User registered: {new_user.username} ({new_user.id})")

    return _token_for(new_user)


@router.post("/login", response_model=Token)
async def login(user_data: UserLogin, db: Session = Depends(get_db)):
    """
    Authenticate and return a JWT plus the user record.
    Client uses the username to re-derive the master encryption key locally.
    """
    user = db.query(User).filter(User.username == user_data.username).first()

    if not user or not verify_password(user_data.password, user.password_hash):
        logger.warning(f"Invalid login attempt for user: {user_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    logger.info(f"User logged in: {user.username} ({user.id})")
    return _token_for(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user info."""
    return current_user
