import pytest

from provisioner.core import validators
from provisioner.core.errors import ValidationError
from provisioner.core.models import Role


class TestValidateBatch:
    def test_returns_entries_and_role(self):
        entries, role = validators.validate_batch({"entries": [{"email": "a@x.test"}], "role": "teacher"})
        assert entries == [{"email": "a@x.test"}]
        assert role is Role.TEACHER

    def test_accepts_caller_aliases(self):
        entries, role = validators.validate_batch({"users": [], "userType": "admin"})
        assert entries == []
        assert role is Role.ADMINISTRATOR

    def test_empty_entry_list_is_valid(self):
        entries, role = validators.validate_batch({"entries": [], "role": "parent"})
        assert entries == []
        assert role is Role.PARENT

    @pytest.mark.parametrize("payload", [None, [], "entries", 42])
    def test_body_must_be_object(self, payload):
        with pytest.raises(ValidationError, match="Request body must be a JSON object"):
            validators.validate_batch(payload)

    @pytest.mark.parametrize(
        "payload",
        [
            {"role": "teacher"},
            {"entries": "not-a-list", "role": "teacher"},
            {"entries": {"email": "a@x.test"}, "role": "teacher"},
            {"entries": []},
            {"entries": [], "role": ""},
        ],
    )
    def test_entries_and_role_required(self, payload):
        with pytest.raises(ValidationError, match='Fields "entries" \\(array\\) and "role" \\(string\\) are required'):
            validators.validate_batch(payload)

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validators.validate_batch({"entries": [], "role": "student"})
        assert exc_info.value.status == 400
        assert "student" in exc_info.value.detail
        assert "administrator, teacher, parent" in exc_info.value.detail

    def test_entries_are_not_inspected(self):
        entries, _ = validators.validate_batch({"entries": [None, 7, {}], "role": "parent"})
        assert entries == [None, 7, {}]


class TestMissingFields:
    def test_complete_entry(self):
        raw = {"email": "a@x.test", "secret": "s", "full_name": "A", "handle": "a"}
        assert validators.missing_fields(raw) == []

    def test_aliases_count_as_present(self):
        raw = {"email": "a@x.test", "password": "s", "full_name": "A", "username": "a"}
        assert validators.missing_fields(raw) == []

    def test_blank_values_are_missing(self):
        raw = {"email": "  ", "secret": "s", "full_name": "", "handle": None}
        assert validators.missing_fields(raw) == ["email", "full_name", "handle"]

    @pytest.mark.parametrize("raw", [None, "text", 3, []])
    def test_non_object_entry_misses_everything(self, raw):
        assert validators.missing_fields(raw) == ["email", "secret", "full_name", "handle"]


class TestValidateIdentifier:
    def test_returns_stripped_identifier(self):
        assert validators.validate_identifier({"identifier": "  abc-123 "}) == "abc-123"

    def test_accepts_profile_id_alias(self):
        assert validators.validate_identifier({"profile_id": "abc-123"}) == "abc-123"

    @pytest.mark.parametrize("payload", [{}, {"identifier": ""}, {"identifier": "   "}, {"identifier": 12}])
    def test_missing_identifier(self, payload):
        with pytest.raises(ValidationError, match='Field "identifier" is required'):
            validators.validate_identifier(payload)

    def test_body_must_be_object(self):
        with pytest.raises(ValidationError, match="JSON object"):
            validators.validate_identifier(["abc"])
