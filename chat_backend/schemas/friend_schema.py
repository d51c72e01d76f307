from pydantic import BaseModel, EmailStr


# --- Input Models ---
class AddFriendRequest(BaseModel):
    email: EmailStr


class FriendIdRequest(BaseModel):
    # id of the user who sent the request
    id: str
