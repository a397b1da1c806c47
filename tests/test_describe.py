"""Tests for rule summaries and RRULE export."""

from datetime import date, datetime

from studyhub.models.recurrence import EndCondition, RecurrenceFrequency, RecurrenceRule
from studyhub.recurrence.describe import describe
from studyhub.recurrence.rrule_export import exdates, rule_to_rrule


def _rule(frequency, **kwargs):
    return RecurrenceRule(frequency=frequency, **kwargs)


class TestDescribe:

    def test_weekly_with_count(self):
        rule = _rule(RecurrenceFrequency.WEEKLY, days_of_week=[3, 1], end_condition=EndCondition.after_count(5))
        assert describe(rule) == "Weekly on Mon, Wed, 5 times"

    def test_every_other_week(self):
        rule = _rule(RecurrenceFrequency.WEEKLY, interval=2, days_of_week=[1, 3])
        assert describe(rule) == "Every 2 weeks on Mon, Wed"

    def test_daily_until(self):
        rule = _rule(RecurrenceFrequency.DAILY, end_condition=EndCondition.on_date(date(2024, 3, 1)))
        assert describe(rule) == "Daily until 2024-03-01"

    def test_custom_weekdays(self):
        rule = _rule(RecurrenceFrequency.CUSTOM, days_of_week=[1, 2, 3, 4, 5])
        assert describe(rule) == "Every day on weekdays"

    def test_monthly_with_exception(self):
        rule = _rule(RecurrenceFrequency.MONTHLY, interval=3, exceptions=[date(2024, 4, 15)])
        assert describe(rule) == "Every 3 months (1 skipped date)"

    def test_single_occurrence(self):
        rule = _rule(RecurrenceFrequency.DAILY, end_condition=EndCondition.after_count(1))
        assert describe(rule) == "Daily, 1 time"


class TestRRuleExport:

    def test_weekly_interval_sets_week_start(self):
        rule = _rule(
            RecurrenceFrequency.WEEKLY,
            interval=2,
            days_of_week=[1, 3],
            end_condition=EndCondition.after_count(10),
        )
        assert rule_to_rrule(rule) == "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;WKST=SU;COUNT=10"

    def test_monthly_uses_anchor_day(self):
        rule = _rule(RecurrenceFrequency.MONTHLY)
        assert rule_to_rrule(rule, datetime(2024, 1, 31, 9, 0)) == "FREQ=MONTHLY;BYMONTHDAY=31"

    def test_until_is_end_of_day(self):
        rule = _rule(RecurrenceFrequency.DAILY, end_condition=EndCondition.on_date("2024-03-01"))
        assert rule_to_rrule(rule) == "FREQ=DAILY;UNTIL=20240301T235959Z"

    def test_custom_exports_as_daily(self):
        rule = _rule(RecurrenceFrequency.CUSTOM, days_of_week=[1, 2, 3, 4, 5])
        assert rule_to_rrule(rule) == "FREQ=DAILY;BYDAY=MO,TU,WE,TH,FR"

    def test_exdates(self):
        rule = _rule(RecurrenceFrequency.DAILY, exceptions=[date(2024, 1, 10)])
        assert exdates(rule, datetime(2024, 1, 8, 9, 30)) == ["20240110T093000"]
