from legaldocs.domains.identity.entities import User
from legaldocs.domains.identity.schemas import UserSnapshot

__all__ = ["User", "UserSnapshot"]
