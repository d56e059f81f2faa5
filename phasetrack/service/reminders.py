import logging
from datetime import date

from phasetrack.engine import clock
from phasetrack.engine.reminders import plan_reminder
from phasetrack.exceptions import NotificationDeliveryError
from phasetrack.models.results import ReminderSweepReport
from phasetrack.notify.base import Notifier
from phasetrack.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Daily reminder sweep. Holds no timers: call ``run_once`` once per day."""

    def __init__(
        self,
        storage: StorageBackend,
        notifier: Notifier,
        timezone: str = clock.DEFAULT_TIMEZONE,
        followup_posttests: bool = False,
    ):
        self._storage = storage
        self._notifier = notifier
        self._timezone = timezone
        self._followup_posttests = followup_posttests

    def run_once(self, today: date | None = None) -> ReminderSweepReport:
        run_date = today if today is not None else clock.today(self._timezone)
        report = ReminderSweepReport(run_date=run_date)

        for state in self._storage.list_progress():
            report.scanned += 1
            request = plan_reminder(state, run_date, self._followup_posttests)
            if request is None:
                continue

            try:
                delivered = self._notifier.send_notification(state, request.template, request.params)
            except NotificationDeliveryError as e:
                logger.warning("Reminder to %s failed: %s", state.user_id, e)
                delivered = False
            except Exception:
                logger.exception("Unexpected error sending reminder to %s", state.user_id)
                delivered = False

            if delivered:
                report.sent.append(state.user_id)
            else:
                report.failed.append(state.user_id)

        logger.info(
            "Reminder sweep %s: scanned=%d sent=%d failed=%d",
            run_date,
            report.scanned,
            len(report.sent),
            len(report.failed),
        )
        return report
