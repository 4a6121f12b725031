# mentorship_engine/exceptions.py
class BusinessLogicError(Exception):
    """Base exception for business logic errors.

    Carries a stable ``code`` for the presentation layer and the ids involved
    as ``context``. Only errors flagged ``retryable`` may succeed when the
    same call is repeated unchanged.
    """
    code = "business_logic_error"
    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self):
        return {"code": self.code, "message": self.message, "context": dict(self.context)}

class NotFoundError(BusinessLogicError):
    """Raised when a resource is not found"""
    code = "not_found"

class ForbiddenError(BusinessLogicError):
    """Raised when the actor is not a party to the record or has the wrong role"""
    code = "forbidden"

class InvalidStatusTransitionError(BusinessLogicError):
    """Raised when invalid status transition is attempted on a mentorship"""
    code = "invalid_transition"

class InvalidStateError(BusinessLogicError):
    """Raised when a session or its mentorship is not in the state an operation needs"""
    code = "invalid_state"

class PairingViolationError(BusinessLogicError):
    """Raised when a mentor and mentee may not be paired"""
    code = "pairing_violation"

class MissingAttributeError(PairingViolationError):
    """Raised when either party has no recognised pairing attribute"""
    code = "missing_attribute"

class AttributeMismatchError(PairingViolationError):
    """Raised when the parties' pairing attributes differ"""
    code = "attribute_mismatch"

class DuplicateRequestError(BusinessLogicError):
    """Raised when an open request or active mentorship already exists for the pair"""
    code = "duplicate_pair"

class InvalidIntervalError(BusinessLogicError):
    """Raised when a session starts in the past or its duration is out of bounds"""
    code = "invalid_interval"

class InvalidSessionDataError(BusinessLogicError):
    """Raised when session details such as the title are unusable"""
    code = "invalid_session_data"

class SchedulingConflictError(BusinessLogicError):
    """Raised when a booking overlaps an open session of the same mentorship"""
    code = "scheduling_conflict"

class RepositoryFailure(BusinessLogicError):
    """Raised when the backing store fails; the only retryable kind"""
    code = "repository_failure"
    retryable = True
