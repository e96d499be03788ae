"""
Test date components: splitting instants, parsing file names and matching.
"""

from datetime import datetime, timedelta, timezone

import pytest

from mediasort.date_components import DateComponents, DateComponentsBuilder


class TestFromInstant:
    """Test conversion of instants to components."""

    def test_naive_instant_uses_wall_clock(self):
        components = DateComponentsBuilder().from_instant(datetime(2024, 3, 5, 14, 30))
        assert components == DateComponents("2024", "03", "05", "14", "30")

    def test_aware_instant_converted_to_builder_timezone(self):
        builder = DateComponentsBuilder(timezone=timezone(timedelta(hours=-5)))
        instant = datetime(2024, 1, 1, 3, 15, tzinfo=timezone.utc)
        assert builder.from_instant(instant) == DateComponents("2023", "12", "31", "22", "15")

    def test_components_are_zero_padded(self):
        components = DateComponentsBuilder().from_instant(datetime(2021, 1, 2, 3, 4))
        assert (components.month, components.day, components.hour, components.minute) == \
            ("01", "02", "03", "04")

    def test_str(self):
        assert str(DateComponents("2024", "03", "05", "14", "30")) == "2024-03-05 14:30"

    @pytest.mark.parametrize("instant", [
        datetime(2024, 3, 5, 14, 30),
        datetime(1999, 12, 31, 23, 59),
        datetime(2020, 2, 29, 0, 0),
        datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
    ])
    def test_matches_is_reflexive(self, instant):
        builder = DateComponentsBuilder()
        components = builder.from_instant(instant)
        assert builder.matches(components, builder.from_instant(instant), include_time=True)


class TestFromFilename:
    """Test extraction of dates from file names."""

    def test_date_and_time(self):
        components = DateComponentsBuilder.from_filename("2024-03-05--14-30.jpg")
        assert components == DateComponents("2024", "03", "05", "14", "30")

    def test_date_only_defaults_time(self):
        components = DateComponentsBuilder.from_filename("IMG 2024-03-05.jpg")
        assert components == DateComponents("2024", "03", "05", "00", "00")

    def test_leftmost_date_wins(self):
        components = DateComponentsBuilder.from_filename("2019-07-04 copy of 2020-01-01--10-00.jpg")
        assert components == DateComponents("2019", "07", "04", "00", "00")

    @pytest.mark.parametrize("name", [
        "IMG_1234.JPG",
        "holiday.mov",
        "2024-3-5.jpg",
        "20240305_143000.jpg",
    ])
    def test_names_without_date(self, name):
        assert DateComponentsBuilder.from_filename(name) is None


class TestMatches:
    """Test component comparison and the unknown-time rule."""

    def test_different_day_never_matches(self):
        lhs = DateComponents("2024", "03", "05", "14", "30")
        rhs = DateComponents("2024", "03", "06", "14", "30")
        assert not DateComponentsBuilder.matches(lhs, rhs, include_time=False)
        assert not DateComponentsBuilder.matches(lhs, rhs, include_time=True)

    def test_hour_mismatch_detected(self):
        lhs = DateComponents("2024", "03", "05", "14", "30")
        rhs = DateComponents("2024", "03", "05", "15", "30")
        assert not DateComponentsBuilder.matches(lhs, rhs, include_time=True)

    def test_time_ignored_without_include_time(self):
        lhs = DateComponents("2024", "03", "05", "14", "30")
        rhs = DateComponents("2024", "03", "05", "15", "45")
        assert DateComponentsBuilder.matches(lhs, rhs, include_time=False)

    @pytest.mark.parametrize("lhs_time,rhs_time", [
        (("00", "00"), ("14", "30")),
        (("14", "30"), ("00", "00")),
        (("00", "30"), ("14", "30")),
        (("14", "00"), ("14", "45")),
    ])
    def test_default_time_is_unknown(self, lhs_time, rhs_time):
        lhs = DateComponents("2024", "03", "05", *lhs_time)
        rhs = DateComponents("2024", "03", "05", *rhs_time)
        assert DateComponentsBuilder.matches(lhs, rhs, include_time=True)

    def test_minute_mismatch_detected(self):
        lhs = DateComponents("2024", "03", "05", "14", "30")
        rhs = DateComponents("2024", "03", "05", "14", "31")
        assert not DateComponentsBuilder.matches(lhs, rhs, include_time=True)
