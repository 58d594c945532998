"""Repository layer for the identity store.

Repositories encapsulate data access logic and provide a clean interface
for the reconciliation stages.
"""

from reconciler.repositories.identity_repo import IdentityFields, IdentityRepository

__all__ = [
    "IdentityFields",
    "IdentityRepository",
]
