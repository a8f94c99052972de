# app/utils/mentions.py
import re
from typing import Any, Iterable, List

MENTION_PATTERN = re.compile(r"@(\w+)")


def _field(user: Any, name: str):
    return user.get(name) if isinstance(user, dict) else getattr(user, name)


def parse_mentions(text: str, users: Iterable[Any]) -> List[int]:
    """
    Resolve @name tokens in text to user ids.

    A token matches a user whose full name contains it, or whose first name
    equals it (case-insensitive). Unresolved tokens are dropped; each user id
    is returned once, in order of first mention.
    """
    users = list(users)
    mentioned: List[int] = []
    for token in MENTION_PATTERN.findall(text or ""):
        name = token.lower()
        for user in users:
            full_name = (_field(user, "full_name") or "").lower()
            first_name = full_name.split(" ")[0] if full_name else ""
            if name in full_name or first_name == name:
                user_id = _field(user, "id")
                if user_id not in mentioned:
                    mentioned.append(user_id)
                break
    return mentioned
