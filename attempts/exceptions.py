from rest_framework import status
from rest_framework.exceptions import APIException


class AttemptLimitExceeded(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Maximum attempts reached for this assessment."
    default_code = "attempt_limit_exceeded"


class RetakeNotYetAllowed(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You cannot retake this assessment yet."
    default_code = "retake_not_yet_allowed"


class AssessmentUnavailable(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "This assessment is not open for attempts."
    default_code = "assessment_unavailable"


class SubmissionLocked(APIException):
    """Write against an attempt that is no longer in progress (stale client)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This attempt has already been submitted. Reload to see your results."
    default_code = "submission_locked"


class InvalidAnswerPayload(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The answer does not match the question type."
    default_code = "invalid_answer"


class MarksOutOfRange(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Marks must be between 0 and the question's maximum."
    default_code = "marks_out_of_range"


class SubmissionNotGradable(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Only submitted attempts can be graded."
    default_code = "submission_not_gradable"


class NotSubmissionOwner(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "This attempt belongs to another learner."
    default_code = "not_submission_owner"
