import pytest

from mentorship_engine.exceptions import (
    AttributeMismatchError, MissingAttributeError, NotFoundError, PairingViolationError
)
from mentorship_engine.services import IdentityDirectory, PairingValidator


@pytest.fixture
def validator(db):
    return PairingValidator(IdentityDirectory(db))


class TestValidatePair:
    """Same-attribute pairing rule."""

    @pytest.mark.parametrize("mentor_gender,mentee_gender", [
        ("male", "female"),
        ("female", "male"),
        ("MALE", "Female"),
    ])
    def test_differing_attributes_mismatch(self, validator, make_user, mentor_gender, mentee_gender):
        mentor = make_user(role="mentor", gender=mentor_gender)
        mentee = make_user(role="mentee", gender=mentee_gender)

        with pytest.raises(AttributeMismatchError) as exc_info:
            validator.validate_pair(mentor.id, mentee.id)

        assert exc_info.value.context == {"mentor_id": mentor.id, "mentee_id": mentee.id}
        assert isinstance(exc_info.value, PairingViolationError)

    @pytest.mark.parametrize("mentor_gender,mentee_gender", [
        ("male", "male"),
        ("female", "Female"),
        (" MALE ", "male"),
    ])
    def test_equal_attributes_pass(self, validator, make_user, mentor_gender, mentee_gender):
        mentor = make_user(role="mentor", gender=mentor_gender)
        mentee = make_user(role="mentee", gender=mentee_gender)

        assert validator.validate_pair(mentor.id, mentee.id) is None

    @pytest.mark.parametrize("missing", [None, "", "   ", "other"])
    def test_mentor_without_recognised_attribute_is_blocked(self, validator, make_user, missing):
        mentor = make_user(role="mentor", gender=missing)
        mentee = make_user(role="mentee", gender="female")

        with pytest.raises(MissingAttributeError) as exc_info:
            validator.validate_pair(mentor.id, mentee.id)

        assert exc_info.value.context["side"] == "mentor"
        assert exc_info.value.context["user_id"] == mentor.id

    def test_mentee_without_attribute_is_blocked(self, validator, make_user):
        mentor = make_user(role="mentor", gender="female")
        mentee = make_user(role="mentee", gender=None)

        with pytest.raises(MissingAttributeError) as exc_info:
            validator.validate_pair(mentor.id, mentee.id)

        assert exc_info.value.context["side"] == "mentee"

    def test_missing_takes_precedence_over_mismatch(self, validator, make_user):
        mentor = make_user(role="mentor", gender="male")
        mentee = make_user(role="mentee", gender="unspecified")

        with pytest.raises(MissingAttributeError):
            validator.validate_pair(mentor.id, mentee.id)

    def test_unknown_user(self, validator, make_user):
        mentor = make_user(role="mentor", gender="female")

        with pytest.raises(NotFoundError):
            validator.validate_pair(mentor.id, 9999)


class TestCheckPair:
    def test_reports_failure_without_raising(self, validator, make_user):
        mentor = make_user(role="mentor", gender="male")
        mentee = make_user(role="mentee", gender="female")

        check = validator.check_pair(mentor.id, mentee.id)

        assert check.ok is False
        assert check.error_code == "attribute_mismatch"
        assert check.message

    def test_reports_success(self, validator, mentor, mentee):
        check = validator.check_pair(mentor.id, mentee.id)

        assert check.ok is True
        assert check.error_code is None


class TestIdentityDirectory:
    def test_normalizes_attribute(self, db, make_user):
        user = make_user(role="mentee", gender="  FeMale ")

        identity = IdentityDirectory(db).get_user(user.id)

        assert identity.match_attribute == "female"
        assert identity.role.value == "mentee"
        assert identity.active is True

    def test_blank_attribute_is_none(self, db, make_user):
        user = make_user(role="mentor", gender="")

        assert IdentityDirectory(db).get_user(user.id).match_attribute is None

    def test_find_user_returns_none_for_unknown_id(self, db):
        assert IdentityDirectory(db).find_user(42) is None
