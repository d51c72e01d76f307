from typing import List, Optional

from pydantic import BaseModel, Field

from chat_backend.models.users import UserProfile


# --- Input Models ---
class GetOrCreateDMRequest(BaseModel):
    friend_id: str = Field(alias="friendId", min_length=1)

    class Config:
        populate_by_name = True


class CreateGroupRequest(BaseModel):
    name: Optional[str] = None
    members: List[str] = Field(default_factory=list)


class MemberRequest(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)

    class Config:
        populate_by_name = True


class UpdateMetaRequest(BaseModel):
    name: str


class RangeRequest(BaseModel):
    start_pos: int = Field(alias="startPos")
    end_pos: int = Field(alias="endPos")

    class Config:
        populate_by_name = True


class SendMessageRequest(BaseModel):
    text: str = Field(min_length=1)


# --- Output Models ---
class ChatIdResponse(BaseModel):
    chat_id: str = Field(alias="chatId")
    created: bool = False

    class Config:
        populate_by_name = True


class DMEntry(BaseModel):
    friend_id: str = Field(alias="friendId")
    chat_id: str = Field(alias="chatId")
    friend: Optional[UserProfile] = None

    class Config:
        populate_by_name = True


class GroupEntry(BaseModel):
    chat_id: str = Field(alias="chatId")
    name: Optional[str] = None
    updated_at: Optional[int] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True


class LastMessage(BaseModel):
    id: Optional[str] = None
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    sender: Optional[UserProfile] = None
    text: Optional[str] = None
    timestamp: Optional[int] = None

    class Config:
        populate_by_name = True


class ChatMetaResponse(BaseModel):
    chat_id: str = Field(alias="chatId")
    type: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = Field(default=None, alias="createdAt")
    updated_at: Optional[int] = Field(default=None, alias="updatedAt")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    members: List[str] = Field(default_factory=list)
    last_message: Optional[LastMessage] = Field(default=None, alias="lastMessage")

    class Config:
        populate_by_name = True


class MembershipResponse(BaseModel):
    user: UserProfile
    chat_id: str = Field(alias="chatId")

    class Config:
        populate_by_name = True


class LeaveResponse(BaseModel):
    chat_id: str = Field(alias="chatId")
    left: bool
    deleted: bool = False

    class Config:
        populate_by_name = True


class UpdateMetaResponse(BaseModel):
    chat_id: str = Field(alias="chatId")
    type: Optional[str] = None
    name: str
    updated_at: int = Field(alias="updatedAt")

    class Config:
        populate_by_name = True
