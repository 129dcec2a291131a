from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR        = "VALIDATION_ERROR"
    UNAUTHORIZED            = "UNAUTHORIZED"
    TOKEN_EXPIRED           = "TOKEN_EXPIRED"
    FORBIDDEN               = "FORBIDDEN"
    NOT_FOUND               = "NOT_FOUND"
    DUPLICATE_ENTRY         = "DUPLICATE_ENTRY"
    DUPLICATE_ASSOCIATION   = "DUPLICATE_ASSOCIATION"
    EXCLUSIVITY_CONFLICT    = "EXCLUSIVITY_CONFLICT"
    INVALID_FIELD           = "INVALID_FIELD"
    INTERNAL_SERVER_ERROR   = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Error raised by services and rendered by middleware.error_handler as
    {message, error: {code, details, field}}.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
    ):
        self.message = message
        self.error_code = error_code
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class DuplicateAssociationException(AppException):
    def __init__(self, message: str = "A conflicting association for this resource already exists"):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ASSOCIATION)


class ExclusivityConflictException(AppException):
    """The resource already has an active FLEET association held by another account."""
    def __init__(self, resource: str, resource_id: str, holder_account_id: str, holder_name: str | None = None):
        self.holder_account_id = holder_account_id
        holder = holder_name or holder_account_id
        super().__init__(
            status.HTTP_409_CONFLICT,
            f"{resource} ({resource_id}) is already FLEET for account '{holder}'. "
            f"Deactivate that association before assigning it to another fleet.",
            ErrorCode.EXCLUSIVITY_CONFLICT,
            details=[{"accountId": holder_account_id, "companyName": holder_name}],
        )


class InvalidFieldException(AppException):
    def __init__(self, message: str = "Invalid field value", field: str | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_FIELD, field=field)
