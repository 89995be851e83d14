from .decode import DecodeError, decode_first, decode_list, decode_one, decode_optional
from .schema import (
    AccountRow,
    AuthorWorks,
    MediaItem,
    Profile,
    Report,
    ReviewAction,
    SaveSummary,
    SessionUser,
    StoreConfigPayload,
    Tag,
    Work,
)

__all__ = [
    "AccountRow",
    "AuthorWorks",
    "DecodeError",
    "MediaItem",
    "Profile",
    "Report",
    "ReviewAction",
    "SaveSummary",
    "SessionUser",
    "StoreConfigPayload",
    "Tag",
    "Work",
    "decode_first",
    "decode_list",
    "decode_one",
    "decode_optional",
]
