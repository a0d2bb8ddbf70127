"""
Records returned by the Cues API.
"""
import functools
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modules.errors import ApiError


def server_record(from_dict):
    """Classmethod decorator turning malformed server records into ApiError."""
    @functools.wraps(from_dict)
    def wrapper(cls, data):
        try:
            return from_dict(cls, data)
        except (KeyError, TypeError) as e:
            raise ApiError(f"Unexpected {cls.__name__.lower()} record from server: missing or invalid {e}") from e
    return classmethod(wrapper)


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Priority"]:
        """Case-insensitive lookup; None or unknown values give None."""
        if not value:
            return None
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        return None


@dataclass
class User:
    id: int
    username: str
    email: str
    created_at: str

    @server_record
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            email=data["email"],
            created_at=data.get("createdAt", ""),
        )


@dataclass
class Project:
    id: int
    name: str
    user_id: Optional[int] = None
    created_at: str = ""

    @server_record
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            user_id=data.get("userId"),
            created_at=data.get("createdAt", ""),
        )


@dataclass
class Task:
    id: int
    title: str
    project_id: int
    is_done: bool = False
    description: Optional[str] = None
    due: Optional[str] = None
    priority: Optional[Priority] = None
    created_at: str = ""

    @server_record
    def from_dict(cls, data: dict) -> "Task":
        return cls(
            id=data["id"],
            title=data["title"],
            project_id=data["projectId"],
            is_done=bool(data.get("isDone", False)),
            description=data.get("description"),
            due=data.get("due"),
            priority=Priority.parse(data.get("priority")),
            created_at=data.get("createdAt", ""),
        )
