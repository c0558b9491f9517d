"""
Escalation (réclamation) schemas.
"""

from pydantic import BaseModel, Field
from typing import List


class EscalationRequest(BaseModel):
    package_id: str = Field(..., max_length=50)
    text: str = Field(..., description="Complaint text; blank text is rejected")


class EscalationResponse(BaseModel):
    package_id: str
    outcome: str
    created: int
    failed: int
    recipients: List[int]
