from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select

from chatpair.core.database import get_db
from chatpair.core.exceptions import UnauthenticatedError
from chatpair.core.security import verify_password, get_password_hash, create_access_token, decode_access_token, oauth2_scheme
from chatpair.models.user import User
from chatpair.schemas.user import UserCreate, Token, UserResponse
from chatpair.utils.logger import get_logger

logger = get_logger("auth")
router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=UserResponse)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    email = user_data.email.lower()
    logger.info(f"Registration request for {email}")

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        logger.warning(f"User already exists: {email}")
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        name=user_data.name,
        email=email,
        hashed_password=get_password_hash(user_data.password),
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"User already exists: {email}")
        raise HTTPException(status_code=400, detail="Email already registered")

    logger.info(f"User created with ID: {new_user.id}")
    return new_user

@router.post("/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    email = form_data.username.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Login failed for: {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": user.email})
    logger.info(f"Login successful for: {user.email}")
    return {"access_token": access_token, "token_type": "bearer"}

async def get_current_user(token: str | None = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)) -> User:
    email = decode_access_token(token)
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthenticatedError()
    return user

@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
