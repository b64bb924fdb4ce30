"""
Transcript entries shared by every prompt service and history store.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    """Speaker role of a transcript entry."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """One turn of a conversation transcript."""
    role: Role
    content: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=Role(data["role"]),
            content=data.get("content") or "",
            name=data.get("name"),
        )


# A transcript is an ordered list of messages, oldest first.
Transcript = List[Message]


def transcript_to_dicts(transcript: Transcript) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in transcript]


def transcript_from_dicts(items: List[Dict[str, Any]]) -> Transcript:
    return [Message.from_dict(item) for item in items]
