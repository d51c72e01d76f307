from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials

from chat_backend.core.database import get_db
from chat_backend.core.exceptions import Unauthenticated
from chat_backend.core.security import SessionAuthenticator, bearer_scheme, get_authenticator
from chat_backend.core.store import Store
from chat_backend.schemas.user_schema import ValidateResponse
from chat_backend.services.user_service import UserService

router = APIRouter()


@router.get("/validate", response_model=ValidateResponse)
def validate_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: SessionAuthenticator = Depends(get_authenticator),
    db: Store = Depends(get_db),
):
    """Check a bearer token and that its user still exists"""
    try:
        user = auth.verify(credentials.credentials if credentials else None)
    except Unauthenticated as e:
        return JSONResponse(status_code=401, content={"valid": False, "message": e.detail})

    if not UserService(db).exists(user.id):
        return JSONResponse(status_code=404, content={"valid": False, "message": "User not found"})
    return {"valid": True}
