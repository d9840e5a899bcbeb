"""
Side-effect collaborators of an ETL run: audit trail and notifications.

Neither collaborator raises; a failing side effect is logged and the run
continues.
"""

from services.audit import AuditService
from services.notification import NotificationService

__all__ = ["AuditService", "NotificationService"]
