from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from ..core.database import get_db
from ..core.errors import UnauthorizedError
from ..core.security import create_access_token
from ..user.crud import authenticate_user, create_user
from ..user.schemas import LoginRequest, LoginResponse, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: Session = Depends(get_db)):
    new_user = create_user(db, data)

    message = "Registration successful."
    if new_user.status == "pending":
        message = "Registration successful. Please wait for administrator approval."

    return {"message": message, "user": UserResponse.model_validate(new_user)}


@router.post("/login")
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, data.email, data.password)
    if not user:
        raise UnauthorizedError("Invalid email or password")

    token = create_access_token(user.id, user.email, user.role)
    logger.info(f"User logged in: {user.username}")
    return {"data": LoginResponse(user=UserResponse.model_validate(user), token=token)}
