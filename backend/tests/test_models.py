"""
Tests for the status enumeration and row conversion
"""
import pytest

from models import (
    MeetingRecord,
    MeetingStatus,
    UnknownStatusError,
    client_from_dict,
    client_to_dict,
    normalize_phone_digits,
    parse_status,
)
from months import InvalidMonthKey


class TestParseStatus:
    @pytest.mark.parametrize("literal", ["PENDING", "DONE", "NOT_DONE", "RESCHEDULED", "CLOSED_CONTRACT"])
    def test_wire_values(self, literal):
        assert parse_status(literal).value == literal

    def test_enum_passes_through(self):
        assert parse_status(MeetingStatus.DONE) is MeetingStatus.DONE

    @pytest.mark.parametrize("bad", ["done", "CANCELLED", "", None, 3])
    def test_unknown_literal_is_distinct_error(self, bad):
        with pytest.raises(UnknownStatusError) as exc_info:
            parse_status(bad)
        assert exc_info.value.value == bad


class TestRowConversion:
    def _row(self, **overrides):
        row = {
            "id": "x1",
            "name": "Ana",
            "phoneDigits": "4821",
            "enrollmentMonth": "2025-01",
            "enrollmentDay": 15,
            "sequenceNumber": 2,
            "statusByMonth": {
                "2025-01": {"status": "DONE", "customDate": 17},
                "2025-08": {"status": "CLOSED_CONTRACT"},
            },
        }
        row.update(overrides)
        return row

    def test_from_dict(self):
        client = client_from_dict(self._row())
        assert client.enrollmentMonth == "2025-01"
        assert client.statusByMonth["2025-01"] == MeetingRecord(MeetingStatus.DONE, 17)
        assert client.statusByMonth["2025-08"] == MeetingRecord(MeetingStatus.CLOSED_CONTRACT)

    def test_to_dict_matches_input(self):
        row = self._row()
        assert client_to_dict(client_from_dict(row)) == row

    def test_missing_status_map_is_empty(self):
        client = client_from_dict(self._row(statusByMonth=None))
        assert client.statusByMonth == {}

    def test_missing_enrollment_day_kept_as_none(self):
        row = self._row()
        del row["enrollmentDay"]
        assert client_from_dict(row).enrollmentDay is None

    def test_unknown_status_in_row(self):
        with pytest.raises(UnknownStatusError):
            client_from_dict(self._row(statusByMonth={"2025-01": {"status": "MAYBE"}}))

    def test_bad_month_key_in_row(self):
        with pytest.raises(InvalidMonthKey):
            client_from_dict(self._row(statusByMonth={"2025-1": {"status": "DONE"}}))
        with pytest.raises(InvalidMonthKey):
            client_from_dict(self._row(enrollmentMonth="Jan 2025"))


class TestPhoneDigits:
    def test_keeps_last_four(self):
        assert normalize_phone_digits("11987654321") == "4321"

    def test_short_input_untouched(self):
        assert normalize_phone_digits("123") == "123"
        assert normalize_phone_digits(" 9012 ") == "9012"
