from rest_framework import status
from rest_framework.exceptions import APIException


class EmptyQuestionBank(APIException):
    """The assessment has no questions, so an attempt can never reach total_marks."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This assessment has no questions configured."
    default_code = "empty_question_bank"
