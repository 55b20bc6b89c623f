"""
Unit tests for the submission models.
"""

from datetime import datetime, timezone

from admin_console.models import PageCursor, SortField, Submission

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestSubmission:
    """Test cases for Submission."""

    def test_missing_or_null_read_is_unread(self):
        assert Submission(id="a").read is False
        assert Submission(id="b", read=None).read is False

    def test_created_at_alias(self):
        submission = Submission(id="a", createdAt=T0)
        assert submission.created_at == T0
        assert submission.field_value("createdAt") == T0
        assert submission.has_field("createdAt")

    def test_submitted_at_falls_back_to_timestamp(self):
        assert Submission(id="a", timestamp=T0).submitted_at == T0

    def test_extra_fields_are_kept(self):
        submission = Submission(id="a", phone="123")
        assert submission.field_value("phone") == "123"
        assert submission.has_field("phone")
        assert not submission.has_field("name")

    def test_cursor_from_submission(self):
        submission = Submission(id="a", name="Ann")
        cursor = PageCursor.from_submission(submission, SortField.NAME)
        assert cursor == PageCursor(sort_field=SortField.NAME, value="Ann", document_id="a")

    def test_non_text_values_become_strings(self):
        submission = Submission(id="a", name=12345, email=None, message=True)
        assert submission.name == "12345"
        assert submission.email is None
        assert submission.message == "True"
