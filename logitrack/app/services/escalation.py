"""
Escalation fan-out.

A driver's complaint ("réclamation") about a package is delivered as one
notification per admin / manager. Each insert runs in its own savepoint so a
failed recipient does not cancel the others.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from logitrack.app.core.config import settings
from logitrack.app.core.exceptions import ValidationFailedError, InsufficientPermissionsError
from logitrack.app.core.roles import Caller, escalation_recipient_roles
from logitrack.app.db.session import commit_or_rollback
from logitrack.app.models.notification import NotificationType
from logitrack.app.models.user import User
from logitrack.app.services.notification_service import NotificationService
from logitrack.app.services.package_store import PackageStore

logger = logging.getLogger("logitrack.escalations")

ESCALATION_TITLE = "Nouvelle réclamation"

OUTCOME_SENT = "sent"
OUTCOME_DEGRADED = "degraded"
OUTCOME_NO_RECIPIENTS = "no_recipients"


@dataclass
class EscalationResult:
    created: int = 0
    failed: int = 0
    recipients: List[int] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        if not self.recipients:
            return OUTCOME_NO_RECIPIENTS
        if self.failed:
            return OUTCOME_DEGRADED
        return OUTCOME_SENT


def build_message(author: User, package_id: str, text: str) -> str:
    limit = settings.escalation_excerpt_length
    excerpt = text[:limit] + ("..." if len(text) > limit else "")
    return (
        f"Le livreur {author.display_name} "
        f"a envoyé une réclamation pour le colis {package_id}: \"{excerpt}\""
    )


async def list_admin_and_manager_users(db: AsyncSession) -> List[User]:
    """
    Escalation recipients.

    Active admins and managers; when none is active, every admin and manager.
    """
    roles = list(escalation_recipient_roles())
    result = await db.execute(
        select(User)
        .where(User.role.in_(roles), User.is_active == True)
        .order_by(User.id)
    )
    users = list(result.scalars().all())
    if users:
        return users

    logger.warning("No active admin or manager, escalating to all of them")
    result = await db.execute(select(User).where(User.role.in_(roles)).order_by(User.id))
    return list(result.scalars().all())


async def submit_escalation(
    db: AsyncSession,
    package_id: str,
    caller: Caller,
    text: str,
) -> EscalationResult:
    """
    Fan a driver complaint out to the back office.

    Raises:
        ValidationFailedError: empty text
        ResourceNotFoundError: unknown package
        InsufficientPermissionsError: package not assigned to the driver
    """
    if text is None or not text.strip():
        raise ValidationFailedError("Escalation text must not be empty", field="text")
    text = text.strip()

    if not caller.profile.can_submit_escalation:
        raise InsufficientPermissionsError("Only drivers can submit escalations")

    package = await PackageStore.get(db, package_id)
    if package.driver_id != caller.user_id:
        raise InsufficientPermissionsError("This package is not assigned to you")

    author = await db.get(User, caller.user_id)
    message = build_message(author, package.id, text)

    # De-duplicate while keeping order
    recipient_ids = list(dict.fromkeys(user.id for user in await list_admin_and_manager_users(db)))
    result = EscalationResult(recipients=recipient_ids)

    for user_id in recipient_ids:
        try:
            async with db.begin_nested():
                db.add(NotificationService.build(
                    user_id=user_id,
                    title=ESCALATION_TITLE,
                    message=message,
                    type=NotificationType.ESCALATION,
                    package_id=package.id,
                ))
            result.created += 1
        except SQLAlchemyError as exc:
            result.failed += 1
            logger.error("Escalation for package %s not delivered to user %s: %s", package.id, user_id, exc)

    await commit_or_rollback(db)

    logger.info(
        "Escalation on package %s by driver %s: %s/%s delivered (%s)",
        package.id, caller.user_id, result.created, len(recipient_ids), result.outcome,
    )
    return result
