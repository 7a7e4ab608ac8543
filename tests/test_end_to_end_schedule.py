"""
EndOfDayTrigger fed with UTC ticks: realistic New York scenarios including a
DST switch between two ticks.
"""

from __future__ import annotations

from datetime import date, timedelta

from eodcloser.schedule import (
    AccountCounts,
    ClosingEvent,
    EndOfDayTrigger,
    PreAlertEvent,
    ScheduleConfig,
    TimeWindowScheduler,
    TriggerKind,
)
from tests.helpers.fakes import utc


class TestNewYorkSummerDay:
    """Close 16:50 ET, 10 minute lead, 2026-07-15 (EDT, UTC-4)."""

    def test_five_minute_ticks(self, ny_trigger):
        start = utc(2026, 7, 15, 20, 35)                 # 16:35 EDT
        fired = {}
        for i in range(6):                               # 16:35 .. 17:00
            instant = start + timedelta(minutes=5 * i)
            for event in ny_trigger.on_tick(instant):
                fired[event.kind] = event

        alert = fired[TriggerKind.PRE_ALERT]
        closing = fired[TriggerKind.CLOSING]
        assert isinstance(alert, PreAlertEvent)
        assert isinstance(closing, ClosingEvent)

        assert (alert.local_time.hour, alert.local_time.minute) == (16, 40)
        assert (closing.local_time.hour, closing.local_time.minute) == (16, 50)
        assert closing.utc_time == utc(2026, 7, 15, 20, 50)
        assert closing.dst_active
        assert closing.timezone_name == "America/New_York"
        assert closing.window_date == date(2026, 7, 15)

    def test_two_ticks_in_one_window_close_once(self, ny_trigger):
        first = ny_trigger.on_tick(utc(2026, 7, 15, 20, 50))
        second = ny_trigger.on_tick(utc(2026, 7, 15, 20, 51))

        assert [e.kind for e in first] == [TriggerKind.CLOSING]
        assert second == []

    def test_counts_attached_to_pre_alert(self, ny_trigger):
        events = ny_trigger.on_tick(utc(2026, 7, 15, 20, 40), counts=lambda: AccountCounts(2, 1))
        assert events[0].counts == AccountCounts(open_positions=2, pending_orders=1)

    def test_failing_counts_provider_does_not_break_tick(self, ny_trigger):
        def counts():
            raise ConnectionError("broker down")

        events = ny_trigger.on_tick(utc(2026, 7, 15, 20, 40), counts=counts)
        assert len(events) == 1
        assert events[0].counts is None


class TestWinterDay:

    def test_same_wall_clock_time_in_standard_time(self, ny_trigger):
        # 2026-01-15 is EST (UTC-5): 16:50 local is 21:50 UTC
        assert ny_trigger.on_tick(utc(2026, 1, 15, 20, 50)) == []
        events = ny_trigger.on_tick(utc(2026, 1, 15, 21, 50))
        assert [e.kind for e in events] == [TriggerKind.CLOSING]
        assert not events[0].dst_active


class TestDaylightSavingTransition:

    def test_standard_to_daylight_between_ticks(self):
        """
        2026-03-08: 06:55 UTC is 01:55 EST, 07:00 UTC is 03:00 EDT.
        A 03:00 close fires on the second tick.
        """
        trigger = EndOfDayTrigger(TimeWindowScheduler(
            ScheduleConfig("America/New_York", close_hour=3, close_minute=0, pre_alert_lead_minutes=10)
        ))

        before = trigger.on_tick(utc(2026, 3, 8, 6, 55))
        after = trigger.on_tick(utc(2026, 3, 8, 7, 0))

        assert before == []
        assert [e.kind for e in after] == [TriggerKind.CLOSING]
        closing = after[0]
        assert (closing.local_time.hour, closing.local_time.minute) == (3, 0)
        assert closing.dst_active
        assert closing.local_time.utcoffset() == timedelta(hours=-4)

    def test_full_days_across_transition_close_at_local_time(self, ny_trigger):
        start = utc(2026, 3, 6, 5, 0)
        closings = []
        for i in range(4 * 24 * 60):                     # one tick a minute, four days
            for event in ny_trigger.on_tick(start + timedelta(minutes=i)):
                if event.kind == TriggerKind.CLOSING:
                    closings.append(event)

        assert [c.window_date for c in closings] == [
            date(2026, 3, 6), date(2026, 3, 7), date(2026, 3, 8), date(2026, 3, 9),
        ]
        assert all((c.local_time.hour, c.local_time.minute) == (16, 50) for c in closings)
        assert [c.utc_time.hour for c in closings] == [21, 21, 20, 20]


class TestNewDayBanner:

    def test_new_day_logged(self, ny_scheduler, caplog):
        trigger = EndOfDayTrigger(ny_scheduler, verbose=True)
        with caplog.at_level("INFO"):
            trigger.on_tick(utc(2026, 7, 15, 12, 0))
            trigger.on_tick(utc(2026, 7, 16, 12, 0))

        banners = [r for r in caplog.records if r.getMessage().startswith("New day detected")]
        assert len(banners) == 2
