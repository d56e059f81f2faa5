from abc import ABC, abstractmethod

from phasetrack.models.enums import TemplateKind
from phasetrack.models.user import UserProgressState


class Notifier(ABC):
    @abstractmethod
    def send_notification(
        self, user: UserProgressState, template: TemplateKind, params: dict
    ) -> bool:
        """Deliver one message. Returns False or raises NotificationDeliveryError on failure."""
