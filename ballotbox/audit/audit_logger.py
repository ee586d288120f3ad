# ballotbox/audit/audit_logger.py

import logging
from enum import Enum
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from ballotbox.database.errors import AuditWriteFailed
from ballotbox.database.models import AuditLogEntry, utcnow

logger = logging.getLogger(__name__)

# Append-only audit trail kept in the audit_logs table. The table is optional:
# when it is missing every operation here degrades to a no-op.


class AuditAction(str, Enum):
    VOTE_CAST = "VOTE_CAST"
    RESET_ALL_VOTES = "RESET_ALL_VOTES"
    RESET_SINGLE_VOTE = "RESET_SINGLE_VOTE"
    ADMIN_LOGIN = "ADMIN_LOGIN"
    ADMIN_ADDED = "ADMIN_ADDED"
    ADMIN_UPDATED = "ADMIN_UPDATED"
    ADMIN_DELETED = "ADMIN_DELETED"
    DATABASE_BACKUP = "DATABASE_BACKUP"
    DATABASE_RESTORE = "DATABASE_RESTORE"
    DATABASE_REPAIR = "DATABASE_REPAIR"


class AuditLogger:
    def __init__(self, session, origin='localhost'):
        self.session = session
        self.origin = origin

    def is_available(self):
        try:
            return inspect(self.session.connection()).has_table(AuditLogEntry.__tablename__)
        except SQLAlchemyError as e:
            logger.warning(f"Could not inspect audit_logs table: {e}")
            return False

    def record(self, action, user_id=None, user_name=None, details=None):
        """Stage an entry in the caller's open transaction; the caller commits."""
        entry = AuditLogEntry(
            action=AuditAction(action).value,
            user_id=None if user_id is None else str(user_id),
            user_name=user_name,
            details=details,
            timestamp=utcnow(),
            ip_address=self.origin,
        )
        self.session.add(entry)
        return entry

    def append(self, action, user_id=None, user_name=None, details=None):
        """Write one entry in its own transaction. Returns the new id, or None if the table is missing."""
        if not self.is_available():
            logger.warning(f"audit_logs table not found, skipping {action}")
            return None
        try:
            entry = self.record(action, user_id, user_name, details)
            self.session.commit()
            logger.debug(f"Audit log added: {entry.action}")
            return entry.id
        except SQLAlchemyError as e:
            self.session.rollback()
            raise AuditWriteFailed(str(e)) from e

    def log_event(self, action, user_id=None, user_name=None, details=None):
        try:
            return self.append(action, user_id, user_name, details)
        except AuditWriteFailed as e:
            logger.warning(f"Audit log skipped for {action}: {e}")
            return None

    def get_all(self):
        if not self.is_available():
            logger.warning("audit_logs table not found")
            return []
        return self.session.query(AuditLogEntry).order_by(AuditLogEntry.id).all()

    def get_by_action(self, action):
        if not self.is_available():
            logger.warning("audit_logs table not found")
            return []
        return (self.session.query(AuditLogEntry)
                .filter_by(action=AuditAction(action).value)
                .order_by(AuditLogEntry.id)
                .all())

    def clear(self):
        if not self.is_available():
            logger.warning("audit_logs table not found")
            return 0
        removed = self.session.query(AuditLogEntry).delete()
        self.session.commit()
        logger.info(f"Audit logs cleared: {removed} entries")
        return removed
