"""Run the daily reminder sweep once.

Prerequisites:
  - AWS credentials configured (~/.aws/credentials or env vars)
  - PHASETRACK_EMAIL_SENDER set to an SES-verified address
  - pip install -e .

Usage (from cron or a scheduled task, once a day):
  python run_reminders.py
"""

import logging

from phasetrack.notify.ses import SesNotifier
from phasetrack.service.reminders import ReminderScheduler
from phasetrack.settings import settings
from phasetrack.storage.dynamo import DynamoStorage

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

if not settings.EMAIL_SENDER:
    raise SystemExit("PHASETRACK_EMAIL_SENDER is not set; reminders need an SES-verified sender")

storage = DynamoStorage(
    endpoint_url=settings.DYNAMODB_ENDPOINT_URL,
    region=settings.AWS_REGION,
    table_prefix=settings.TABLE_PREFIX,
)
notifier = SesNotifier(
    sender=settings.EMAIL_SENDER,
    region=settings.AWS_REGION,
    team_name=settings.STUDY_TEAM_NAME,
)
scheduler = ReminderScheduler(
    storage,
    notifier,
    timezone=settings.REFERENCE_TIMEZONE,
    followup_posttests=settings.REMINDER_FOLLOWUP_POSTTESTS,
)

report = scheduler.run_once()
print(f"{report.run_date}: sent {len(report.sent)}, failed {len(report.failed)} of {report.scanned} users")
