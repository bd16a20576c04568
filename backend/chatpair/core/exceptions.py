"""Error kinds raised by the code registry, request ledger and auth layer.

Each error carries a stable machine-readable ``code`` and the HTTP status the
API answers with. Services raise them; ``chatpair.main`` renders them.
"""


class ChatPairError(Exception):
    """Base exception for all chat pairing errors."""

    code = "error"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(ChatPairError):
    """Raised when no user identity can be resolved from the request."""

    code = "unauthenticated"
    status_code = 401
    default_message = "Could not validate credentials"


class UnauthorizedError(ChatPairError):
    """Raised when the caller has no rights over the target record."""

    code = "unauthorized"
    status_code = 403
    default_message = "Not authorized"


class InvalidFormatError(ChatPairError):
    """Raised when a chat code is not exactly 8 ASCII digits."""

    code = "invalid_format"
    status_code = 422
    default_message = "Chat code must be exactly 8 digits"


class InvalidValidityError(ChatPairError):
    """Raised when a requested validity window is negative or out of range."""

    code = "invalid_validity"
    status_code = 422
    default_message = "Validity hours must be a non-negative number"


class CodeNotFoundError(ChatPairError):
    """Raised when a chat code is unknown, expired or retired."""

    code = "code_not_found"
    status_code = 404
    default_message = "Chat code not found"


class SelfRequestError(ChatPairError):
    """Raised when a user requests a chat through their own code."""

    code = "self_request"
    status_code = 400
    default_message = "You cannot send a request to your own chat code"


class DuplicateRequestError(ChatPairError):
    """Raised when an active request already exists for the same code."""

    code = "duplicate_request"
    status_code = 409
    default_message = "A request for this chat code already exists"


class AlreadyResolvedError(ChatPairError):
    """Raised when accepting or declining a request that is no longer pending."""

    code = "already_resolved"
    status_code = 409
    default_message = "Request has already been resolved"


class CodeGenerationExhaustedError(ChatPairError):
    """Raised when no free chat code was found within the retry cap."""

    code = "code_generation_exhausted"
    status_code = 503
    default_message = "Could not generate a unique chat code, try again later"
