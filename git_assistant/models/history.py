"""Command history entry model"""
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def _generate_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class CommandHistoryItem:
    """One executed command as shown in the history view."""
    command: str
    command_name: str
    success: bool
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_generate_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "command": self.command,
            "command_name": self.command_name,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CommandHistoryItem":
        """Rebuild an entry from its stored form; raises KeyError/ValueError on bad data."""
        return cls(
            id=str(data["id"]),
            command=str(data["command"]),
            command_name=str(data.get("command_name") or data["command"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            success=bool(data["success"]),
            error=data.get("error"),
        )
