"""Activity logging helpers.

Best-effort audit trail: failures should not break the main request.
"""

from __future__ import annotations

from typing import Any, Optional

from flask import current_app, has_request_context, request

from extensions import db


def log_activity(
    *,
    staff_id: Optional[str],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    try:
        from models.activity_log import ActivityLog

        in_request = has_request_context()
        log = ActivityLog(
            staff_id=staff_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=(request.remote_addr if in_request else None),
            user_agent=(request.user_agent.string[:255] if in_request and request.user_agent else None),
        )
        db.session.add(log)
        db.session.commit()
    except Exception as e:
        current_app.logger.warning('Activity log write failed (%s): %s', action, e)
        try:
            db.session.rollback()
        except Exception:
            pass
