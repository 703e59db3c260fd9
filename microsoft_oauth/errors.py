"""Error types raised by the Microsoft / Xbox Live login chain"""

from typing import Optional


class AuthError(Exception):
    """Base class for auth-related errors.

    Attributes
    ----------
    code : str | None
        A short machine-friendly error code (e.g. "XSTS-2148916233").
    detail : str | None
        Optional extra detail (e.g. server response text).
    """

    def __init__(self, message: str = "", *, code: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.detail = detail

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(AuthError):
    """Raised when required configuration is missing or contradictory."""


class ListenerStartupError(AuthError):
    """Raised when the local callback listener cannot bind its port."""


class AuthenticationError(AuthError):
    """A structured failure reported by one of the identity provider hops.

    ``error`` is the provider's own error identifier, ``message`` its
    human-readable description and ``additional_info`` whatever extra
    reference it attached (correlation id, redirect hint, request path).
    """

    def __init__(
        self,
        error: str,
        message: str = "",
        additional_info: Optional[str] = None,
        *,
        code: Optional[str] = None,
    ):
        super().__init__(message or error, code=code or error, detail=additional_info)
        self.error = error
        self.message = message
        self.additional_info = additional_info


class ProviderAuthError(AuthenticationError):
    """OAuth token endpoint returned an ``error`` payload."""

    def __init__(self, error: str, description: str = "", correlation_id: Optional[str] = None):
        super().__init__(error, description, correlation_id)
        self.description = description
        self.correlation_id = correlation_id


class XboxLiveError(AuthenticationError):
    """Xbox Live user authentication failed or returned an unexpected shape."""


# Known XSTS XErr values
XSTS_ERROR_HINTS = {
    2148916227: "The account is banned from Xbox.",
    2148916229: "The account is restricted by parental controls.",
    2148916233: "The account has no Xbox profile; sign in to Xbox once and retry.",
    2148916234: "The account has not accepted the Xbox terms of service.",
    2148916235: "Xbox Live is not available in the account's region.",
    2148916236: "The account needs adult verification (South Korea).",
    2148916237: "The account needs adult verification (South Korea).",
    2148916238: "The account is a child account and must be added to a family.",
}


class XSTSError(AuthenticationError):
    """XSTS authorization refused the account.

    ``xerr`` is the numeric code exactly as the service sent it; it is the
    value callers should branch on (region lockouts, child accounts, ...).
    """

    def __init__(self, xerr: int, message: str = "", redirect: Optional[str] = None):
        super().__init__(str(xerr), message or XSTS_ERROR_HINTS.get(xerr, ""), redirect, code=f"XSTS-{xerr}")
        self.xerr = xerr
        self.redirect = redirect

    @property
    def hint(self) -> Optional[str]:
        return XSTS_ERROR_HINTS.get(self.xerr)


class GameTokenError(AuthenticationError):
    """Minecraft services refused the Xbox identity token."""

    def __init__(self, error: str, message: str = "", path: Optional[str] = None):
        super().__init__(error, message, path, code="MC-LOGIN")
        self.path = path


class TokenExpiredError(AuthenticationError):
    """The game access token was rejected as unauthorized (HTTP 401)."""


class OwnershipError(AuthError):
    """Raised when the account does not own Minecraft: Java Edition."""


class LoginAborted(AuthError):
    """The interactive login ended without an authorization code.

    ``outcome`` is the listener outcome that ended the attempt.
    """

    def __init__(self, outcome, message: str = ""):
        super().__init__(message or f"Login ended without an authorization code: {outcome!r}", code="LOGIN-ABORTED")
        self.outcome = outcome
