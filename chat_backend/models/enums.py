import enum


class ChatType(str, enum.Enum):
    # "dms" is the stored value for direct chats
    DM = "dms"
    GROUP = "group"
