from datetime import UTC, date, datetime, timezone, timedelta
from zoneinfo import ZoneInfo

from phasetrack.engine.clock import days_between, local_date, today


class TestLocalDate:
    def test_plain_date_unchanged(self):
        assert local_date(date(2025, 3, 1)) == date(2025, 3, 1)

    def test_utc_evening_is_previous_day_in_chicago(self):
        # 03:30 UTC on Jan 2 is 21:30 on Jan 1 in Chicago
        moment = datetime(2025, 1, 2, 3, 30, tzinfo=UTC)
        assert local_date(moment, "America/Chicago") == date(2025, 1, 1)
        assert local_date(moment, "UTC") == date(2025, 1, 2)

    def test_naive_datetime_taken_as_utc(self):
        assert local_date(datetime(2025, 1, 2, 3, 30), "America/Chicago") == date(2025, 1, 1)

    def test_accepts_zoneinfo(self):
        moment = datetime(2025, 6, 1, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert local_date(moment, ZoneInfo("Europe/Berlin")) == date(2025, 6, 2)


class TestToday:
    def test_uses_injected_now(self):
        now = datetime(2025, 1, 2, 3, 30, tzinfo=UTC)
        assert today("America/Chicago", now=now) == date(2025, 1, 1)
        assert today("Asia/Tokyo", now=now) == date(2025, 1, 2)


class TestDaysBetween:
    def test_same_day(self):
        assert days_between(date(2025, 1, 1), date(2025, 1, 1)) == 0

    def test_forward(self):
        assert days_between(date(2025, 1, 1), date(2025, 1, 13)) == 12

    def test_sign_preserving(self):
        assert days_between(date(2025, 1, 13), date(2025, 1, 1)) == -12

    def test_across_month_and_year(self):
        assert days_between(date(2024, 12, 30), date(2025, 2, 4)) == 36

    def test_dst_change_does_not_shift_count(self):
        # US DST started 2025-03-09
        assert days_between(date(2025, 3, 8), date(2025, 3, 10), "America/Chicago") == 2

    def test_near_midnight_uses_reference_zone(self):
        baseline = date(2025, 1, 1)
        # Still Jan 1 in Chicago, already Jan 2 in UTC
        late_evening = datetime(2025, 1, 2, 5, 0, tzinfo=UTC)
        assert days_between(baseline, late_evening, "America/Chicago") == 0
        assert days_between(baseline, late_evening, "UTC") == 1
