from typing import Optional

from pydantic import BaseModel


class UserProfile(BaseModel):
    """Public projection of ``user:{id}``. Credentials never leave the store."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_hash(cls, raw: dict, fallback_id: str = None) -> Optional["UserProfile"]:
        if not raw:
            return None
        user_id = raw.get("id") or fallback_id
        if not user_id:
            return None
        return cls(
            id=user_id,
            name=raw.get("name"),
            email=raw.get("email"),
            image=raw.get("image") or None,
        )
