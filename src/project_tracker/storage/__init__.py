from .container import Container
from .interfaces import ActivityRepository, OwnedRepository, UserRepository

__all__ = ["Container", "ActivityRepository", "OwnedRepository", "UserRepository"]
