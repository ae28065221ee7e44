"""
Opaque user identity used for ownership checks.
Owner and requester ids are compared as UserId values, never as raw text.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserId:
    value: int

    def __post_init__(self):
        # bool is an int subclass; neither it nor numeric strings are identities
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"UserId requires an int, got {type(self.value).__name__}")

    def __str__(self) -> str:
        return str(self.value)
