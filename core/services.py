import logging

from .models import AdminLog

logger = logging.getLogger("portal.admin")


class AdminLogService:
    @staticmethod
    def log(actor, action, target_type, target_id=None, meta=None):
        """
        Records an admin action in the audit ledger.
        """
        if meta is None:
            meta = {}

        entry = AdminLog.objects.create(
            actor=actor,
            action=action,
            target_type=target_type,
            target_id=target_id,
            meta=meta,
        )

        logger.info(
            f"Admin action: actor={getattr(actor, 'id', 'unknown')}, action={action}, "
            f"target={target_type}#{target_id}"
        )
        return entry
