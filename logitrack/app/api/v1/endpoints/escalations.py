"""
Escalation (réclamation) API endpoint.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.app.db.session import get_db
from logitrack.app.core.guards import require_capability
from logitrack.app.core.roles import Caller
from logitrack.app.schemas.escalation import EscalationRequest, EscalationResponse
from logitrack.app.services.escalation import submit_escalation

router = APIRouter(prefix="/escalations", tags=["Escalations"])


@router.post("", response_model=EscalationResponse, status_code=status.HTTP_201_CREATED)
async def create_escalation(
    data: EscalationRequest,
    caller: Caller = Depends(require_capability("can_submit_escalation")),
    db: AsyncSession = Depends(get_db)
):
    """
    Notify every admin and manager about a problem with a package.

    Partial delivery is reported as outcome "degraded", not as an error.
    """
    result = await submit_escalation(db, data.package_id, caller, data.text)
    return EscalationResponse(
        package_id=data.package_id,
        outcome=result.outcome,
        created=result.created,
        failed=result.failed,
        recipients=result.recipients,
    )
