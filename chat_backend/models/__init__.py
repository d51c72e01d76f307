from .users import UserProfile
from .chat import ChatMeta
from .messages import Message, decode_payload
from .enums import ChatType
