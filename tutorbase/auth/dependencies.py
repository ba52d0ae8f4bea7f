import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tutorbase.auth import jwt_handler
from tutorbase.core.errors import DomainError, to_http_exception
from tutorbase.database import get_db
from tutorbase.models.user import User
from tutorbase.services.account_session import AccountSession

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_roles(*roles: str):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{' or '.join(role.capitalize() for role in roles)} access required.",
            )
        return current_user

    return dependency


def get_account_session(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = AccountSession.open(db, current_user)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    try:
        yield session
    finally:
        session.close()


def get_access_session(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = AccountSession.open_for_access_check(db, current_user)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    try:
        yield session
    finally:
        session.close()
