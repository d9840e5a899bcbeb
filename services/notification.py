"""
ETL run notifications posted to a webhook.

The message carries a subject line and a plain-text body with the run id,
duration and per-source outcome. Without a configured webhook the message is
only logged.
"""

import httpx
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo
from core.config import Settings
import logging

logger = logging.getLogger(__name__)

JST = ZoneInfo("Asia/Tokyo")


class NotificationService:
    """
    Send success/failure notices for ETL runs.

    Never raises: a delivery failure is logged and the run result stands.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: float = 10.0,
        environment: str = "development",
        schedule_hours: str = "6,12,18,22",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.environment = environment
        self.schedule_hours = schedule_hours
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings) -> "NotificationService":
        return cls(
            webhook_url=config.NOTIFICATION_WEBHOOK_URL,
            timeout=config.NOTIFICATION_TIMEOUT_SECONDS,
            environment=config.ENVIRONMENT,
            schedule_hours=config.ETL_SCHEDULE_HOURS
        )

    async def send_etl_notification(
        self,
        status: str,
        run_id: Optional[str] = None,
        duration_ms: Optional[int] = None,
        results: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> bool:
        """
        Notify about a finished run.

        Args:
            status: "success" or "failure"
            results: ETLResults in their JSON (camelCase) form

        Returns:
            True if the webhook accepted the message
        """
        try:
            message = self.build_message(status, run_id, duration_ms, results, error, timestamp)
            logger.info(f"Sending ETL notification: {status}")

            if not self.webhook_url:
                logger.info(f"No notification webhook configured; {message['subject']}")
                return False

            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.webhook_url, json=message)
                response.raise_for_status()

            logger.info(f"ETL notification delivered ({response.status_code})")
            return True

        except Exception as e:
            logger.error(f"Failed to send ETL notification: {e}")
            return False

    def build_message(
        self,
        status: str,
        run_id: Optional[str],
        duration_ms: Optional[int],
        results: Optional[Dict[str, Any]],
        error: Optional[str],
        timestamp: Optional[datetime] = None
    ) -> Dict[str, Any]:
        timestamp = timestamp or datetime.now(timezone.utc)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        jst_time = timestamp.astimezone(JST).strftime("%Y-%m-%d %H:%M:%S")

        is_success = status == "success"
        status_text = "SUCCESS" if is_success else "FAILURE"
        subject = f"ETL {status_text} - {jst_time} JST"

        lines = [f"ETL {status_text}", "", f"Run time (JST): {jst_time}"]
        if run_id:
            lines.append(f"Run ID: {run_id}")
        if duration_ms is not None:
            lines.append(f"Duration: {duration_ms / 1000:.2f}s")

        if is_success and results:
            lines.extend(["", *self._results_lines(results)])
        if not is_success and error:
            lines.extend(["", f"Error: {error}"])

        hours = ", ".join(f"{int(h):02d}:00" for h in self.schedule_hours.split(","))
        lines.extend([
            "",
            f"Environment: {self.environment}",
            f"Scheduled runs: {hours} (JST)"
        ])

        return {
            "subject": subject,
            "text": "\n".join(lines),
            "status": status,
            "run_id": run_id,
            "duration_ms": duration_ms,
            "results": results,
            "error": error
        }

    @staticmethod
    def _results_lines(results: Dict[str, Any]):
        entries = results.get("results") or []
        if not isinstance(entries, list):
            return []

        lines = [
            f"Succeeded: {results.get('successCount', 0)}/{len(entries)} sources",
            f"Total time: {results.get('totalDuration', 0) / 1000:.2f}s",
        ]
        for entry in entries:
            outcome = "SUCCESS" if entry.get("success") else "FAILURE"
            line = f"{entry.get('source')}: {outcome} ({entry.get('recordsProcessed', 0)} records)"
            if entry.get("error"):
                line += f" - {entry['error']}"
            lines.append(line)
        return lines
