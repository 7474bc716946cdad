# Identity endpoints
from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...schemas import AuthResponse, Credentials, Identity
from ..auth import get_current_user, get_password_hash, token_for, verify_password
from ..database import get_db
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/signup", response_model=AuthResponse)
def sign_up(request: Credentials, db: Session = Depends(get_db)):
    """Register a new account and sign it in."""
    email = request.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(email=email, hashed_password=get_password_hash(request.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")

    return AuthResponse(access_token=token_for(user), user=Identity.model_validate(user))

@router.post("/signin", response_model=AuthResponse)
def sign_in(request: Credentials, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == request.email.lower()).first()
    if not user or not verify_password(request.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return AuthResponse(access_token=token_for(user), user=Identity.model_validate(user))

@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy.
    logger.info(f"User {current_user.id} signed out")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/user", response_model=Identity)
def current_identity(current_user: User = Depends(get_current_user)):
    return current_user
