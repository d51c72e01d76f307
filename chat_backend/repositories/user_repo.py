import logging
import uuid
from typing import Iterable, Optional

from chat_backend.core import keys
from chat_backend.core.store import Store
from chat_backend.models.users import UserProfile

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Store):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        return UserProfile.from_hash(self.db.hgetall(keys.user(user_id)), fallback_id=user_id)

    def get_id_by_email(self, email: str) -> Optional[str]:
        return self.db.get(keys.user_by_email(email.strip().lower()))

    def get_many(self, user_ids: Iterable[str]) -> list[UserProfile]:
        """Resolve ids to profiles, silently dropping ids with no profile."""
        profiles = []
        for user_id in sorted(set(user_ids)):
            profile = self.get_by_id(user_id)
            if profile is None:
                logger.debug(f"Skipping stale user reference {user_id}")
                continue
            profiles.append(profile)
        return profiles

    def create_user(self, name: str, email: str, image: str = None, user_id: str = None) -> UserProfile:
        """Write the profile hash and the email index.

        Called by the external signup flow once credentials are stored.
        """
        email = email.strip().lower()
        user_id = user_id or str(uuid.uuid4())
        self.db.hset(keys.user(user_id), {"id": user_id, "name": name, "email": email, "image": image})
        self.db.set(keys.user_by_email(email), user_id)
        logger.info(f"User profile written: {user_id}")
        return UserProfile(id=user_id, name=name, email=email, image=image)
