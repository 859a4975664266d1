from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryUser:
    """Employee identity as published by the user directory."""

    user_id: str
    email: str
    first_name: str = ""
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
