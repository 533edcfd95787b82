"""Shared helpers for the closed vocabularies stored in the database."""

from enum import Enum


class NormalizedEnum(str, Enum):
    """String enum that accepts any casing or spacing on input.

    Values are stored lowercase snake_case. Lookups such as
    ``BookCondition("Like New")`` or ``OrderStatus("PAID")`` resolve to the
    canonical member, so legacy rows and client input never leak a second
    spelling of the same value into the system.
    """

    @classmethod
    def _missing_(cls, value: object) -> "NormalizedEnum | None":
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == key:
                return member
        return None

    def __str__(self) -> str:
        return self.value
