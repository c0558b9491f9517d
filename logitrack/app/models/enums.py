"""
User roles enumeration.

Defines the role types for the parcel tracking system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Back office with full access, including the status catalog
        MANAGER: Back office ("gestionnaire"), assigns and follows packages
        DRIVER: Delivery agent ("livreur"), sees only assigned packages
    """
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    DRIVER = "DRIVER"
