from typing import List

from fastapi import APIRouter, Depends, status

from chat_backend.core.database import get_db
from chat_backend.core.security import AuthUser, get_current_user
from chat_backend.core.store import Store
from chat_backend.models.enums import ChatType
from chat_backend.models.messages import Message
from chat_backend.models.users import UserProfile
from chat_backend.schemas.chat_schema import (
    ChatIdResponse, ChatMetaResponse, CreateGroupRequest, DMEntry, GetOrCreateDMRequest, GroupEntry,
    LeaveResponse, MemberRequest, MembershipResponse, RangeRequest, SendMessageRequest,
    UpdateMetaRequest, UpdateMetaResponse,
)
from chat_backend.services.chat_service import ChatService
from chat_backend.services.notification_service import Notifier, get_request_notifier

# main.py mounts these under /api/chat/dms and /api/chat/group
dm_router = APIRouter()
group_router = APIRouter()


def get_chat_service(
    db: Store = Depends(get_db),
    notifier: Notifier = Depends(get_request_notifier),
) -> ChatService:
    return ChatService(db, notifier)


# --- Direct messages ---

@dm_router.post("/get-or-create", response_model=ChatIdResponse)
def get_or_create_dm(
    body: GetOrCreateDMRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    chat_id, created = service.get_or_create_dm(current_user.id, body.friend_id)
    return {"chatId": chat_id, "created": created}


@dm_router.get("/list", response_model=List[DMEntry])
def list_dms(
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.list_dms_for_user(current_user.id)


@dm_router.get("/{chat_id}", response_model=ChatMetaResponse)
def get_dm_meta(
    chat_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.get_meta(current_user.id, chat_id, expected_type=ChatType.DM)


@dm_router.post("/{chat_id}/messages", response_model=List[Message])
def get_dm_messages(
    chat_id: str,
    body: RangeRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.get_messages(current_user.id, chat_id, body.start_pos, body.end_pos, expected_type=ChatType.DM)


@dm_router.post("/{chat_id}/send", response_model=Message, status_code=status.HTTP_201_CREATED)
def send_dm(
    chat_id: str,
    body: SendMessageRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.send_message(current_user.id, chat_id, body.text, expected_type=ChatType.DM)


# --- Groups ---

@group_router.post("/create", response_model=ChatIdResponse)
def create_group(
    body: CreateGroupRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    chat_id = service.create_group(current_user.id, body.name, body.members)
    return {"chatId": chat_id, "created": True}


@group_router.get("/list", response_model=List[GroupEntry])
def list_groups(
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Groups of the caller, most recently active first"""
    return service.list_groups_for_user(current_user.id)


@group_router.get("/{chat_id}", response_model=ChatMetaResponse)
def get_group_meta(
    chat_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.get_meta(current_user.id, chat_id, expected_type=ChatType.GROUP)


@group_router.post("/{chat_id}/add-member", response_model=MembershipResponse)
def add_member(
    chat_id: str,
    body: MemberRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    user = service.add_member(current_user.id, chat_id, body.user_id)
    return {"user": user, "chatId": chat_id}


@group_router.post("/{chat_id}/remove-member", response_model=MembershipResponse)
def remove_member(
    chat_id: str,
    body: MemberRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    user = service.remove_member(current_user.id, chat_id, body.user_id)
    return {"user": user, "chatId": chat_id}


@group_router.post("/{chat_id}/leave", response_model=LeaveResponse)
def leave_group(
    chat_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.leave(current_user.id, chat_id)


@group_router.post("/{chat_id}/members", response_model=List[UserProfile])
def list_members(
    chat_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.list_members(current_user.id, chat_id)


@group_router.patch("/{chat_id}/update-meta", response_model=UpdateMetaResponse)
def update_group_meta(
    chat_id: str,
    body: UpdateMetaRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.update_group_meta(current_user.id, chat_id, body.name)


@group_router.post("/{chat_id}/messages", response_model=List[Message])
def get_group_messages(
    chat_id: str,
    body: RangeRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.get_messages(current_user.id, chat_id, body.start_pos, body.end_pos, expected_type=ChatType.GROUP)


@group_router.post("/{chat_id}/send", response_model=Message, status_code=status.HTTP_201_CREATED)
def send_group_message(
    chat_id: str,
    body: SendMessageRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.send_message(current_user.id, chat_id, body.text, expected_type=ChatType.GROUP)
