"""Directory of users, financial institutions and branches."""

from .institutions import InstitutionManager
from .security import hash_password, verify_password
from .seed import seed_demo_data
from .users import UserManager, load_user, row_to_user

__all__ = [
    "InstitutionManager",
    "UserManager",
    "hash_password",
    "load_user",
    "row_to_user",
    "seed_demo_data",
    "verify_password",
]
