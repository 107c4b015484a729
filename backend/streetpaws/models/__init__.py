# Models package init
"""
Importing this package registers every table on Base.metadata, which both
Alembic autogenerate and the test suite's create_all() rely on.
"""

from streetpaws.models.user import User
from streetpaws.models.pet import Pet, Comment, pet_cheers
from streetpaws.models.auth_token import AuthToken

__all__ = ["User", "Pet", "Comment", "pet_cheers", "AuthToken"]
