"""
Badge count schemas.
"""

from pydantic import BaseModel
from typing import Dict


class BadgeCountsResponse(BaseModel):
    driver_id: int
    counts: Dict[str, int]
    total: int
