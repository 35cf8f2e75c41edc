"""
Audit trail of editor actions.
"""

import json
import logging
import math
from typing import Any, Optional

from mushaf.config import get_settings
from mushaf.exceptions import ValidationError
from mushaf.models import ActivityPage, ActivityRecord, Pagination
from mushaf.storage.database import Database
from mushaf.storage.filters import FilterSet

logger = logging.getLogger(__name__)

_ACTIVITY_COLUMNS = frozenset({"user_id", "action", "entity_type", "entity_id"})


def _encode(values: Optional[dict[str, Any]]) -> Optional[str]:
    if values is None:
        return None
    return json.dumps(values, ensure_ascii=False, default=str)


def _decode(text: Optional[str]) -> Optional[dict[str, Any]]:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Unreadable activity values: %s", text[:100])
        return None


class ActivityLogger:
    """
    Writes and lists activity records.

    Writing is a side effect of other operations, so ``log`` never raises:
    a failed write is logged and the caller carries on.
    """

    def __init__(self, db: Database):
        self.db = db

    def log(
        self,
        user_id: Optional[int],
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[int]:
        """
        Record an action.

        Returns:
            The new record id, or None if the write failed
        """
        try:
            cursor = self.db.execute_query(
                """
                INSERT INTO activity_logs
                  (user_id, action, entity_type, entity_id, old_values, new_values, ip_address, user_agent)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, action, entity_type, entity_id,
                 _encode(old_values), _encode(new_values), ip_address, user_agent),
            )
        except Exception:
            logger.exception("Activity log write failed for action '%s'", action)
            return None
        return cursor.lastrowid

    def get_all(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
    ) -> ActivityPage:
        """Newest first, filtered by any combination of actor, action and entity."""
        limit = limit or get_settings().activity_page_size
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive integers")

        filters = FilterSet(allowed=_ACTIVITY_COLUMNS)
        filters.where_if(user_id, "user_id")
        filters.where_if(action, "action")
        filters.where_if(entity_type, "entity_type")
        filters.where_if(entity_id, "entity_id")
        clause, params = filters.to_sql()

        total = self.db.fetch_one(f"SELECT COUNT(*) AS total FROM activity_logs WHERE {clause}", params)["total"]
        rows = self.db.fetch_all(
            f"SELECT * FROM activity_logs WHERE {clause} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (*params, limit, (page - 1) * limit),
        )

        logs = []
        for r in rows:
            record = dict(r)
            record["old_values"] = _decode(record["old_values"])
            record["new_values"] = _decode(record["new_values"])
            logs.append(ActivityRecord.model_validate(record))

        return ActivityPage(
            logs=logs,
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )
