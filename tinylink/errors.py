"""Errors raised by the link service and its store adapter.

Everything a caller is expected to handle derives from ``LinkError``.
``DuplicateCodeError`` is the store's collision signal; the service always
turns it into ``CodeConflict`` before it leaves the core.
"""


class LinkError(Exception):
    message = "Link error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidUrl(LinkError):
    message = "Invalid URL"


class InvalidCode(LinkError):
    message = "Invalid code format"


class CodeConflict(LinkError):
    message = "Code already exists"


class NotFound(LinkError):
    message = "Not found"


class TransientStoreError(LinkError):
    message = "Store unavailable"


class DuplicateCodeError(Exception):
    def __init__(self, code: str):
        super().__init__(f"Code {code!r} already exists in store")
        self.code = code
