"""
Quiz Exceptions
Error taxonomy shared by the question bank, quiz engine and leaderboard
FILE: timed_quiz/core/exceptions.py
"""


class QuizError(Exception):
    """Base exception for quiz errors"""

    status_code = 500
    code = "QuizError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuizError):
    """Raised when input is malformed or missing (caller-fixable)"""

    status_code = 400
    code = "ValidationError"


class NotFoundError(QuizError):
    """Raised when a question or session id is unknown"""

    status_code = 404
    code = "NotFoundError"


class AlreadySubmittedError(QuizError):
    """Raised when a session has already been submitted"""

    status_code = 409
    code = "AlreadySubmittedError"


class InsufficientDataError(QuizError):
    """Raised when the bank holds fewer questions than the quiz requires"""

    status_code = 503
    code = "InsufficientDataError"


class SubmissionWindowClosedError(QuizError):
    """Raised under the reject policy once a session's grace window has passed"""

    status_code = 410
    code = "SubmissionWindowClosedError"
