from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tutorbase.auth import jwt_handler
from tutorbase.auth.dependencies import get_account_session, get_current_user
from tutorbase.models.user import User
from tutorbase.services.account_session import AccountSession, AccountSessionSummary

router = APIRouter()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    id: int
    email: str
    role: str


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return MeResponse(id=current_user.id, email=current_user.email, role=current_user.role)


@router.get("/session", response_model=AccountSessionSummary)
def session_summary(session: AccountSession = Depends(get_account_session)):
    return session.summary()


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(current_user: User = Depends(get_current_user)):
    token = jwt_handler.create_access_token(subject=current_user.email, role=current_user.role)
    return TokenResponse(access_token=token)
