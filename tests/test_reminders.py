from unittest.mock import MagicMock

import pytest
from botocore.exceptions import EndpointConnectionError

from phasetrack.engine.reminders import plan_reminder
from phasetrack.exceptions import NotificationDeliveryError
from phasetrack.models.enums import Phase, TemplateKind
from phasetrack.notify.ses import SesNotifier
from phasetrack.service.reminders import ReminderScheduler

from tests.conftest import BASELINE, days_after, make_state


class TestPlanReminder:
    @pytest.mark.parametrize("offset,day", [(0, 1), (1, 2), (2, 3), (3, 4)])
    def test_training_reminder_follows_calendar(self, training_user, offset, day):
        request = plan_reminder(training_user, days_after(offset))
        assert request is not None
        assert request.template == TemplateKind.TRAINING_REMINDER
        assert request.training_day == day
        assert request.params == {"user_id": "user-1", "phase": "training", "day": day}

    def test_ignores_day_counter(self):
        # Counter lags at 1, reminder still targets the calendar day
        state = make_state(current_phase=Phase.TRAINING, training_day=1, baseline_date=BASELINE)
        assert plan_reminder(state, days_after(3)).training_day == 4

    def test_posttest1_reminder_at_offset_four(self, training_user):
        request = plan_reminder(training_user, days_after(4))
        assert request.template == TemplateKind.POSTTEST_REMINDER
        assert request.phase == Phase.POSTTEST1
        assert request.training_day is None

    @pytest.mark.parametrize("offset", [5, 12, 35, 90])
    def test_nothing_later_by_default(self, offset):
        state = make_state(current_phase=Phase.POSTTEST2, training_day=4, baseline_date=BASELINE)
        assert plan_reminder(state, days_after(offset)) is None

    def test_no_baseline(self, new_user):
        assert plan_reminder(new_user, days_after(1)) is None

    def test_suspended_or_done(self):
        suspended = make_state(current_phase=Phase.TRAINING, baseline_date=BASELINE, account_active=False)
        done = make_state(
            current_phase=Phase.POSTTEST3, training_day=4, baseline_date=BASELINE, completed=True
        )
        assert plan_reminder(suspended, days_after(1)) is None
        assert plan_reminder(done, days_after(1)) is None

    def test_followup_posttests(self):
        state = make_state(current_phase=Phase.POSTTEST2, training_day=4, baseline_date=BASELINE)
        request = plan_reminder(state, days_after(35), followup_posttests=True)
        assert request.phase == Phase.POSTTEST2
        assert plan_reminder(state, days_after(36), followup_posttests=True) is None

    def test_followup_only_for_current_phase(self):
        state = make_state(current_phase=Phase.POSTTEST1, training_day=4, baseline_date=BASELINE)
        assert plan_reminder(state, days_after(35), followup_posttests=True) is None


class TestReminderScheduler:
    def _populate(self, storage):
        for user_id, baseline in (("a", BASELINE), ("b", BASELINE), ("c", None)):
            state = make_state(
                user_id=user_id,
                current_phase=Phase.TRAINING if baseline else Phase.PRETEST,
                baseline_date=baseline,
            )
            storage.create_progress(state)

    def test_sends_one_per_due_user(self, storage):
        self._populate(storage)
        notifier = MagicMock()
        notifier.send_notification.return_value = True

        report = ReminderScheduler(storage, notifier).run_once(today=days_after(1))

        assert report.scanned == 3
        assert sorted(report.sent) == ["a", "b"]
        assert report.failed == []
        assert notifier.send_notification.call_count == 2
        _, template, params = notifier.send_notification.call_args.args
        assert template == TemplateKind.TRAINING_REMINDER
        assert params["day"] == 2

    def test_failure_does_not_stop_sweep(self, storage):
        self._populate(storage)
        notifier = MagicMock()

        def _send(user, template, params):
            if user.user_id == "a":
                raise NotificationDeliveryError("smtp down", user.user_id)
            return True

        notifier.send_notification.side_effect = _send
        report = ReminderScheduler(storage, notifier).run_once(today=days_after(2))

        assert report.sent == ["b"]
        assert report.failed == ["a"]

    def test_ses_connection_error_does_not_stop_sweep(self, storage):
        self._populate(storage)
        client = MagicMock()

        def _send_email(**kwargs):
            if kwargs["Destination"]["ToAddresses"] == ["a@example.org"]:
                raise EndpointConnectionError(endpoint_url="https://email.us-east-1.amazonaws.com")
            return {"MessageId": "m-1"}

        client.send_email.side_effect = _send_email
        notifier = SesNotifier(sender="study@example.org", client=client)

        report = ReminderScheduler(storage, notifier).run_once(today=days_after(1))

        assert report.sent == ["b"]
        assert report.failed == ["a"]
        assert client.send_email.call_count == 2

    def test_unexpected_notifier_error_counts_as_failure(self, storage):
        self._populate(storage)
        notifier = MagicMock()
        notifier.send_notification.side_effect = [RuntimeError("boom"), True]

        report = ReminderScheduler(storage, notifier).run_once(today=days_after(1))

        assert len(report.sent) == 1
        assert len(report.failed) == 1

    def test_false_result_counts_as_failure(self, storage):
        self._populate(storage)
        notifier = MagicMock()
        notifier.send_notification.return_value = False
        report = ReminderScheduler(storage, notifier).run_once(today=days_after(0))
        assert sorted(report.failed) == ["a", "b"]

    def test_does_not_touch_state(self, storage):
        self._populate(storage)
        before = {s.user_id: s for s in storage.list_progress()}
        notifier = MagicMock()
        notifier.send_notification.return_value = True
        ReminderScheduler(storage, notifier).run_once(today=days_after(3))
        after = {s.user_id: s for s in storage.list_progress()}
        assert before == after

    def test_quiet_day(self, storage):
        self._populate(storage)
        notifier = MagicMock()
        report = ReminderScheduler(storage, notifier).run_once(today=days_after(8))
        assert report.sent == [] and report.failed == []
        notifier.send_notification.assert_not_called()
