"""
Status catalog enumerations.
"""

import enum


class StatusEntityType(str, enum.Enum):
    """Kinds of entities a catalog status can describe."""
    PACKAGE = "package"
    VOUCHER = "voucher"
    DRIVER = "driver"
    CLIENT = "client"


class StatusColor(str, enum.Enum):
    """
    Fixed display palette.

    Unknown colour values stored by older clients resolve to GRAY.
    """
    GRAY = "gray"
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    INDIGO = "indigo"
    PURPLE = "purple"
    PINK = "pink"
