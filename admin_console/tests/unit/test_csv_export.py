"""
Unit tests for CSV export and date rendering.
"""

from datetime import datetime, timezone

from admin_console.models import Submission
from admin_console.utils.csv_export import export_to_csv, submission_export_rows
from admin_console.utils.dates import humanize_date, to_datetime


class TestExportToCsv:
    """Test cases for export_to_csv."""

    def test_empty_rows_produce_nothing(self):
        assert export_to_csv([]) is None

    def test_header_and_quoted_values(self):
        rows = [{"id": "1", "name": "Ann"}, {"id": "2", "name": "Ben"}]
        assert export_to_csv(rows) == b'id,name\n"1","Ann"\n"2","Ben"'

    def test_embedded_quotes_doubled(self):
        data = export_to_csv([{"message": 'He said "hi"'}])
        assert data.decode("utf-8").splitlines()[1] == '"He said ""hi"""'

    def test_header_keys_are_joined_unquoted(self):
        rows = [{"a,b": "1", 'say "x"': "2"}]
        assert export_to_csv(rows) == b'a,b,say "x"\n"1","2"'

    def test_missing_and_none_values_are_empty(self):
        rows = [{"a": "x", "b": None}, {"a": "y"}]
        assert export_to_csv(rows) == b'a,b\n"x",""\n"y",""'

    def test_keys_come_from_first_row(self):
        rows = [{"a": "1"}, {"a": "2", "extra": "ignored"}]
        assert export_to_csv(rows) == b'a\n"1"\n"2"'

    def test_booleans_render_lowercase(self):
        assert export_to_csv([{"read": True}, {"read": False}]) == b'read\n"true"\n"false"'

    def test_order_preserving_and_idempotent(self):
        rows = [{"id": str(i)} for i in (3, 1, 2)]
        first = export_to_csv(rows)
        assert first == export_to_csv(rows)
        assert first.decode("utf-8").splitlines()[1:] == ['"3"', '"1"', '"2"']

    def test_embedded_newline_stays_quoted(self):
        data = export_to_csv([{"message": "line one\nline two"}])
        assert data == b'message\n"line one\nline two"'

    def test_utf8_output(self):
        data = export_to_csv([{"name": "Zoë"}])
        assert data.decode("utf-8") == 'name\n"Zoë"'


class TestSubmissionExportRows:
    """Test cases for submission_export_rows."""

    def test_row_shape(self):
        submission = Submission(
            id="abc",
            name="Ann",
            email=None,
            message="Hi",
            createdAt=datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc),
            read=True,
        )

        rows = submission_export_rows([submission])

        assert rows == [{
            "id": "abc",
            "name": "Ann",
            "email": "",
            "message": "Hi",
            "date": "2024-01-02 03:04",
            "read": True,
        }]

    def test_falls_back_to_timestamp(self):
        submission = Submission(id="x", timestamp="2024-05-06T07:08:00Z")
        assert submission_export_rows([submission])[0]["date"] == "2024-05-06 07:08"


class TestHumanizeDate:
    """Test cases for humanize_date."""

    def test_empty(self):
        assert humanize_date(None) == ""
        assert humanize_date("") == ""

    def test_datetime(self):
        value = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
        assert humanize_date(value) == "2024-01-02 03:04"

    def test_naive_datetime_treated_as_utc(self):
        assert humanize_date(datetime(2024, 1, 2, 3, 4)) == "2024-01-02 03:04"

    def test_timezone_conversion(self):
        value = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
        assert humanize_date(value, tz="Asia/Tokyo") == "2024-01-02 12:04"

    def test_epoch_milliseconds(self):
        assert humanize_date(1704164640000) == "2024-01-02 03:04"

    def test_sdk_timestamp_object(self):
        class FakeTimestamp:
            def to_datetime(self):
                return datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)

        assert humanize_date(FakeTimestamp()) == "2024-01-02 03:04"

    def test_malformed_values_degrade_to_empty(self):
        assert humanize_date("not a date") == ""
        assert humanize_date(object()) == ""
        assert humanize_date(datetime(2024, 1, 1), tz="Not/AZone") == ""

    def test_to_datetime_parses_iso(self):
        assert to_datetime("2024-01-02T03:04:00+00:00") == datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
