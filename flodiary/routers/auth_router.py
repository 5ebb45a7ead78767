import logging

from fastapi import APIRouter, Depends

from ..application.services.auth_service import AuthService
from ..exceptions import create_success_response
from ..schemas.auth import LoginRequest, SignupRequest
from .deps import get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/signup", status_code=201)
async def signup(payload: SignupRequest, auth: AuthService = Depends(get_auth_service)):
    user = await auth.register(
        first_name=payload.first_name,
        last_name=payload.last_name,
        username=payload.username,
        email=payload.email,
        raw_password=payload.password,
    )
    token = auth.issue_token(user.id)
    return create_success_response({"message": "User created successfully", "user": user.to_dict(), "token": token})


@router.post("/login")
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    user = await auth.verify(payload.identifier, payload.password)
    user = await auth.record_login(user)
    token = auth.issue_token(user.id)
    return create_success_response({"message": "Login successful", "user": user.to_dict(), "token": token})
