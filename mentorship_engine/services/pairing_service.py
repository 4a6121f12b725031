import logging
from typing import Optional

from ..config import get_settings
from ..constants import ErrorMessages
from ..exceptions import AttributeMismatchError, MissingAttributeError, PairingViolationError
from ..schemas import PairingCheck
from .identity_service import IdentityDirectory

logger = logging.getLogger(__name__)

class PairingValidator:
    """Enforces that a mentor and mentee share the same recognised pairing attribute."""

    def __init__(self, directory: IdentityDirectory):
        self.directory = directory
        self.allowed = {a.strip().lower() for a in get_settings().ALLOWED_MATCH_ATTRIBUTES}

    def is_recognised(self, attribute: Optional[str]) -> bool:
        return attribute is not None and attribute in self.allowed

    def validate_pair(self, mentor_id: int, mentee_id: int) -> None:
        """
        Raises MissingAttributeError when either side has no recognised attribute
        (an incomplete profile blocks pairing rather than defaulting), and
        AttributeMismatchError when the two differ. No side effects.
        """
        mentor = self.directory.get_user(mentor_id)
        mentee = self.directory.get_user(mentee_id)

        if not self.is_recognised(mentor.match_attribute):
            raise MissingAttributeError(ErrorMessages.MENTOR_ATTRIBUTE_MISSING, user_id=mentor_id, side="mentor")
        if not self.is_recognised(mentee.match_attribute):
            raise MissingAttributeError(ErrorMessages.MENTEE_ATTRIBUTE_MISSING, user_id=mentee_id, side="mentee")
        if mentor.match_attribute != mentee.match_attribute:
            logger.info(f"Pairing rejected: mentor {mentor_id} and mentee {mentee_id} have different attributes")
            raise AttributeMismatchError(ErrorMessages.ATTRIBUTE_MISMATCH, mentor_id=mentor_id, mentee_id=mentee_id)

    def check_pair(self, mentor_id: int, mentee_id: int) -> PairingCheck:
        """Non-raising pre-flight variant of validate_pair for UI checks."""
        try:
            self.validate_pair(mentor_id, mentee_id)
        except PairingViolationError as e:
            return PairingCheck(mentor_id=mentor_id, mentee_id=mentee_id, ok=False, error_code=e.code, message=e.message)
        return PairingCheck(mentor_id=mentor_id, mentee_id=mentee_id, ok=True)
