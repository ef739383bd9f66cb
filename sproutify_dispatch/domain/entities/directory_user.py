"""Domain entity representing a community member from the user directory."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryUser:
    """Identifier and contact address of a community member."""

    id: str
    email: str | None
