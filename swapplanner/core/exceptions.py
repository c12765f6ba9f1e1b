from fastapi import HTTPException, status


class SwapPlannerException(HTTPException):
    """Base exception for calling-contract errors of the planner."""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class InvalidInputError(SwapPlannerException):
    """
    Raised when a required collection is missing or has the wrong shape.
    Capacity problems are NOT errors: they are reported as constraint violations.
    """
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid planner input: {detail}"
        )


class UnknownColorError(Exception):
    """
    Raised by strict color lookups when a record references a color id the
    profile does not declare.
    NOT an HTTP exception - callers catch it, log a warning and skip the record.
    """
    def __init__(self, color_id: str):
        self.color_id = color_id
        super().__init__(f"Unknown color id: {color_id}")
