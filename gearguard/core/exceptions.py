"""Error taxonomy for the maintenance workflow and its document store access"""


class GearGuardError(Exception):
    """Base exception carrying a human readable reason and an HTTP status"""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(GearGuardError):
    """Raised when a referenced equipment, team, technician or request is missing"""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=404)


class WorkflowValidationError(GearGuardError):
    """Raised when a required field is missing or a rule is violated"""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=400)


class InvalidStatusTransitionError(WorkflowValidationError):
    def __init__(self, current: str, next_status: str):
        self.current = current
        self.next_status = next_status
        super().__init__(f"Invalid status transition: {current} -> {next_status}")


class TechnicianNotInTeamError(WorkflowValidationError):
    def __init__(self, message: str = "Technician is not a member of the assigned team"):
        super().__init__(message)


class StoreOperationError(GearGuardError):
    """Raised when the document store rejects an operation"""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message=message, status_code=status_code)


class StoreUnavailableError(StoreOperationError):
    """Raised when the document store cannot be reached or an operation times out"""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=503)
