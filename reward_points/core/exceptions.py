from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ForbiddenError(BaseAppException):
    """Actor is not the approver assigned to the entry"""
    def __init__(self, detail: str = "You are not authorized to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class ConflictError(BaseAppException):
    def __init__(self, detail: str = "Conflicting data"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class InvalidStateError(BaseAppException):
    """Action is not allowed from the entry's current approval state"""
    def __init__(self, detail: str = "Invalid approval state"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
