from typing import List

from fastapi import APIRouter, Depends

from chat_backend.core.database import get_db
from chat_backend.core.security import AuthUser, get_current_user
from chat_backend.core.store import Store
from chat_backend.models.users import UserProfile
from chat_backend.schemas.friend_schema import AddFriendRequest, FriendIdRequest
from chat_backend.services.friend_service import FriendService
from chat_backend.services.notification_service import Notifier, get_request_notifier

router = APIRouter()


def get_friend_service(
    db: Store = Depends(get_db),
    notifier: Notifier = Depends(get_request_notifier),
) -> FriendService:
    return FriendService(db, notifier)


@router.post("/add")
def add_friend(
    body: AddFriendRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Send a friend request by email"""
    service.send_request(current_user.id, body.email)
    return {"status": "OK"}


@router.post("/accept")
def accept_friend(
    body: FriendIdRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    service.accept_request(current_user.id, body.id)
    return {"status": "OK"}


@router.post("/deny")
def deny_friend(
    body: FriendIdRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    service.deny_request(current_user.id, body.id)
    return {"status": "OK"}


@router.get("", response_model=List[UserProfile])
def get_friends(
    current_user: AuthUser = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    return service.list_friends(current_user.id)


@router.get("/ids", response_model=List[str])
def get_friend_ids(
    current_user: AuthUser = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    return service.list_friend_ids(current_user.id)


@router.get("/requests", response_model=List[UserProfile])
def get_friend_requests(
    current_user: AuthUser = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Incoming requests, resolved to the senders' profiles"""
    return service.list_incoming_requests(current_user.id)
