"""
Dashboard schemas.
"""

from pydantic import BaseModel


class BackOfficeStats(BaseModel):
    total_packages: int
    pending: int
    processing: int
    delivered: int
    returned: int
    registered_clients: int
    partner_companies: int
    active_drivers: int


class DriverStats(BaseModel):
    to_deliver_today: int
    in_progress: int
    delivered_today: int
    returned: int
