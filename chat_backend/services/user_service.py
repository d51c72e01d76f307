from chat_backend.core.exceptions import NotFound
from chat_backend.core.store import Store
from chat_backend.models.users import UserProfile
from chat_backend.repositories.user_repo import UserRepository


class UserService:
    def __init__(self, db: Store):
        self.user_repo = UserRepository(db)
        self.db = db

    def get_user_by_id(self, user_id: str) -> UserProfile:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def exists(self, user_id: str) -> bool:
        return self.user_repo.get_by_id(user_id) is not None
