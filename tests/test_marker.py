"""Tests for the rule codec and the legacy description marker."""

from datetime import date

from studyhub.models.recurrence import EndCondition, EndConditionType, RecurrenceFrequency, RecurrenceRule
from studyhub.recurrence.marker import (
    embed_marker,
    extract_rule,
    has_marker,
    normalize_rule_payload,
    rule_from_payload,
    strip_marker,
)


def _rule():
    return RecurrenceRule(
        frequency=RecurrenceFrequency.WEEKLY,
        days_of_week=[1, 3],
        end_condition=EndCondition.after_count(3),
        exceptions=[date(2024, 1, 10)],
    )


class TestMarker:

    def test_embed_then_extract(self):
        text = embed_marker("Bring the lab notebook", _rule())
        assert text.startswith("Bring the lab notebook\n\n__RECURRENCE_PATTERN__")
        assert text.endswith("__END_PATTERN__")
        assert extract_rule(text) == _rule()

    def test_strip_restores_description(self):
        assert strip_marker(embed_marker("Bring the lab notebook", _rule())) == "Bring the lab notebook"

    def test_embed_into_empty_description(self):
        text = embed_marker(None, _rule())
        assert text.startswith("__RECURRENCE_PATTERN__")
        assert strip_marker(text) == ""

    def test_embed_replaces_existing_marker(self):
        once = embed_marker("Notes", _rule())
        daily = RecurrenceRule(frequency=RecurrenceFrequency.DAILY)
        twice = embed_marker(once, daily)
        assert twice.count("__RECURRENCE_PATTERN__") == 1
        assert extract_rule(twice) == daily

    def test_no_marker(self):
        assert extract_rule("Just a description") is None
        assert extract_rule(None) is None
        assert has_marker("Just a description") is False
        assert strip_marker(None) is None

    def test_malformed_json_degrades_to_not_recurring(self):
        assert extract_rule("x __RECURRENCE_PATTERN__{not json__END_PATTERN__") is None

    def test_invalid_rule_degrades_to_not_recurring(self):
        assert extract_rule('__RECURRENCE_PATTERN__{"frequency": "hourly"}__END_PATTERN__') is None

    def test_legacy_marker_from_web_client(self):
        text = (
            "Weekly review\n\n__RECURRENCE_PATTERN__"
            '{"type":"weekly","interval":1,"daysOfWeek":[2,4],"occurrences":6}'
            "__END_PATTERN__"
        )
        rule = extract_rule(text)
        assert rule is not None
        assert rule.frequency == RecurrenceFrequency.WEEKLY
        assert rule.days_of_week == [2, 4]
        assert rule.end_condition.type == EndConditionType.AFTER_COUNT
        assert rule.end_condition.count == 6


class TestNormalizePayload:
    """All accepted payload shapes map onto RecurrenceRule fields."""

    def test_camel_case(self):
        data = normalize_rule_payload(
            {"frequency": "weekly", "daysOfWeek": [1], "endCondition": {"type": "onDate", "date": "2024-03-01"}}
        )
        assert data["days_of_week"] == [1]
        assert data["end_condition"] == {"type": "on_date", "until": "2024-03-01"}

    def test_legacy_yearly_becomes_twelve_months(self):
        rule = rule_from_payload({"type": "yearly", "interval": 2, "endDate": "2030-01-01T00:00:00.000Z"})
        assert rule.frequency == RecurrenceFrequency.MONTHLY
        assert rule.interval == 24
        assert rule.end_condition.until_date == date(2030, 1, 1)

    def test_legacy_workdays_only(self):
        rule = rule_from_payload({"type": "daily", "interval": 1, "workdaysOnly": True})
        assert rule.frequency == RecurrenceFrequency.CUSTOM
        assert rule.days_of_week == [1, 2, 3, 4, 5]

    def test_exception_timestamps_reduced_to_dates(self):
        rule = rule_from_payload({"frequency": "daily", "exceptions": ["2024-01-10T09:00:00Z", "2024-01-10"]})
        assert rule.exceptions == [date(2024, 1, 10)]

    def test_round_trip_through_payload(self):
        assert rule_from_payload(_rule().to_payload()) == _rule()

    def test_unparseable_payload(self):
        assert rule_from_payload("weekly") is None
        assert rule_from_payload({"frequency": "weekly", "interval": "often"}) is None
