from mend.persistence.repository import (
    CooldownRepository,
    InMemoryCooldownRepository,
    SqlCooldownRepository,
)

__all__ = [
    "CooldownRepository",
    "InMemoryCooldownRepository",
    "SqlCooldownRepository",
]
