"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "app_error"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Serialize the error for a JSON response."""
        return {"status": "error", "code": self.code, "message": self.message}


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "validation_error"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when an operation needs a signed-in user."""

    code = "not_signed_in"

    def __init__(self, message="You must be signed in."):
        """Initialize the error."""
        super().__init__(message, 401)


class UnauthorizedError(AppError):
    """Raised when the signed-in user may not perform an operation."""

    code = "unauthorized"

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "not_found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class LeagueNotFoundError(NotFoundError):
    """Raised when a league document does not exist."""

    code = "league_not_found"

    def __init__(self, message="League not found."):
        """Initialize the error."""
        super().__init__(message)


class MatchNotFoundError(NotFoundError):
    """Raised when a match document does not exist."""

    code = "match_not_found"

    def __init__(self, message="Match not found."):
        """Initialize the error."""
        super().__init__(message)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    code = "duplicate"

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class AlreadyGeneratedError(DuplicateResourceError):
    """Raised when a league already has bracket matches."""

    code = "already_generated"

    def __init__(
        self,
        message=(
            "Matches already exist for this tournament. "
            "Delete existing matches first to regenerate."
        ),
    ):
        """Initialize the error."""
        super().__init__(message)


class AlreadyMemberError(DuplicateResourceError):
    """Raised when a user joins a league they already belong to."""

    code = "already_member"

    def __init__(self, message="You are already a member of this league."):
        """Initialize the error."""
        super().__init__(message)


class LeagueFullError(AppError):
    """Raised when a league has reached its participant cap."""

    code = "league_full"

    def __init__(self, message="Tournament is full. Maximum participants reached."):
        """Initialize the error."""
        super().__init__(message, 409)


class UnsupportedFormatError(ValidationError):
    """Raised when a league's tournament format cannot produce a bracket."""

    code = "unsupported_format"

    def __init__(
        self, message="Match generation is only available for bracket tournaments."
    ):
        """Initialize the error."""
        super().__init__(message)


class InsufficientParticipantsError(ValidationError):
    """Raised when too few active members exist to build a bracket."""

    code = "insufficient_participants"

    def __init__(self, message="Need at least 2 participants to generate matches."):
        """Initialize the error."""
        super().__init__(message)


class MatchStateError(ValidationError):
    """Raised when a match cannot move to the requested state."""

    code = "invalid_match_state"

    def __init__(self, message="The match cannot be updated in its current state."):
        """Initialize the error."""
        super().__init__(message)
