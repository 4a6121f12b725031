# mentorship_engine/constants.py
class ErrorMessages:
    USER_NOT_FOUND = "User not found"
    MENTOR_UNAVAILABLE = "The selected mentor is no longer available"
    MENTEE_ONLY = "Only mentees can request mentors"
    MENTORSHIP_NOT_FOUND = "Mentorship not found"
    SESSION_NOT_FOUND = "Session not found"
    NOT_MENTOR_OF_RECORD = "Only the mentor of this mentorship can perform this action"
    NOT_PARTY_OF_RECORD = "You are not a participant in this mentorship"
    DUPLICATE_PAIR = "An open mentorship already exists between this mentor and mentee"
    MENTOR_ATTRIBUTE_MISSING = "Mentor must set a valid gender before accepting mentorships"
    MENTEE_ATTRIBUTE_MISSING = "Mentee must set a valid gender before requesting mentorships"
    ATTRIBUTE_MISMATCH = "Mentors can only pair with mentees who share the same gender"
    MENTORSHIP_NOT_ACTIVE = "Sessions can only be booked on an active mentorship"
    SESSION_TITLE_REQUIRED = "Session title is required"
    SESSION_START_INVALID = "Session start must be a date and time"
    SESSION_IN_PAST = "Sessions must start in the future"
    SESSION_NOT_STARTED = "A session cannot be completed before it starts"
    SESSION_DURATION = "Session duration must be between {minimum} and {maximum} minutes"
    SCHEDULING_CONFLICT = "This time slot conflicts with an existing session"

class Defaults:
    DECLINE_NOTE = "Declined by mentor"
    SESSION_DECLINE_REASON = "Declined by mentor"

class LockKeys:
    MENTORSHIP_PAIR = "mentorship-pair:{mentor_id}:{mentee_id}"
    MENTORSHIP_SESSIONS = "mentorship-sessions:{mentorship_id}"
