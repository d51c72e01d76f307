from fastapi import APIRouter, Depends

from chat_backend.core.database import get_db
from chat_backend.core.security import AuthUser, get_current_user
from chat_backend.core.store import Store
from chat_backend.models.users import UserProfile
from chat_backend.services.user_service import UserService

router = APIRouter()


@router.get("/me", response_model=UserProfile)
def read_users_me(current_user: AuthUser = Depends(get_current_user), db: Store = Depends(get_db)):
    return UserService(db).get_user_by_id(current_user.id)


@router.get("/{user_id}", response_model=UserProfile)
def read_user(user_id: str, current_user: AuthUser = Depends(get_current_user), db: Store = Depends(get_db)):
    return UserService(db).get_user_by_id(user_id)
