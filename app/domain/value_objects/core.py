"""Domain value objects for the observation portal.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass

_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9]+(?:[._%+-][a-zA-Z0-9]+)*@(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$"
)


def is_valid_email(value: str | None) -> bool:
    """Return True if value looks like a staff email address."""
    if not value or not isinstance(value, str):
        return False
    return bool(_EMAIL_RE.match(value.strip()))


@dataclass(frozen=True)
class UserEmail:
    """Value object for a staff email (normalized: stripped, lowercase).

    The normalized form is the user identity used in cache params and in
    property names for snapshots and role history.
    """

    value: str

    def __post_init__(self) -> None:
        if not is_valid_email(self.value):
            raise ValueError(f"Invalid email format: {self.value!r}")
        object.__setattr__(self, "value", self.value.strip().lower())

    def __str__(self) -> str:
        return self.value
