"""
Error taxonomy for the Q&A board.

Every error carries a short machine-readable ``code`` (sent to clients as
``{"ok": false, "error": code}``) and the HTTP status it maps to.
"""


class QABoardError(Exception):
    status_code = 500
    code = "server_error"

    def __init__(self, code: str | None = None, message: str | None = None):
        if code:
            self.code = code
        super().__init__(message or self.code)


class InvalidInput(QABoardError):
    """Empty or oversized text, missing userId."""

    status_code = 400
    code = "invalid_input"


class NotFound(QABoardError):
    status_code = 404
    code = "not_found"


class Forbidden(QABoardError):
    """Bad or missing admin credential. Never carries detail."""

    status_code = 403
    code = "forbidden"


class StorageFailure(QABoardError):
    """The persistence layer failed. Logged and reported as a generic server error."""

    status_code = 500
    code = "server_error"
