import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from phasetrack.exceptions import NotificationDeliveryError
from phasetrack.models.enums import TemplateKind
from phasetrack.models.user import UserProgressState
from phasetrack.notify.base import Notifier
from phasetrack.notify.templates import render

logger = logging.getLogger(__name__)


class SesNotifier(Notifier):
    """Sends reminder emails through Amazon SES."""

    def __init__(
        self,
        sender: str,
        region: str = "us-east-1",
        team_name: str = "Perceptual Training Team",
        client=None,
    ):
        if not sender:
            raise ValueError("An SES-verified sender address is required")
        self._sender = sender
        self._team_name = team_name
        self._client = client or boto3.client("ses", region_name=region)

    def send_notification(
        self, user: UserProgressState, template: TemplateKind, params: dict
    ) -> bool:
        subject, body = render(template, params, self._team_name)
        try:
            resp = self._client.send_email(
                Source=self._sender,
                Destination={"ToAddresses": [user.email]},
                Message={
                    "Subject": {"Data": subject},
                    "Body": {"Text": {"Data": body}},
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise NotificationDeliveryError(
                f"SES could not send {template.value} for {user.user_id}: {e}", user.user_id
            ) from e
        logger.info("Email sent to %s: %s", user.user_id, resp.get("MessageId"))
        return True
