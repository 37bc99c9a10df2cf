class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` groups the concrete errors into the four families the API layer
    maps to a response: validation, conflict, not-found and state.
    """

    kind = "DomainError"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "ValidationError"


class ConflictError(DomainError):
    """Raised when the operation collides with an existing record or state."""

    kind = "ConflictError"


class NotFoundError(DomainError):
    """Raised when a referenced entity or active item does not exist."""

    kind = "NotFoundError"


class StateError(DomainError):
    """Raised when the operation is invalid for the record's current state."""

    kind = "StateError"


class InvalidInterval(ValidationError):
    def __init__(self, start, end):
        super().__init__(f"Interval end {end} is earlier than start {start}")
        self.start = start
        self.end = end


class DuplicateCheckIn(ConflictError):
    def __init__(self, employee_id: int, work_date):
        super().__init__(f"Employee {employee_id} already checked in on {work_date}")
        self.employee_id = employee_id
        self.work_date = work_date


class DuplicatePayrollPeriod(ConflictError):
    def __init__(self, employee_id: int, month: int, year: int):
        super().__init__(f"Payroll already exists for employee {employee_id} ({month:02d}/{year})")
        self.employee_id = employee_id
        self.month = month
        self.year = year


class AlreadyOnBreak(ConflictError):
    pass


class AlreadyCheckedOut(ConflictError):
    pass


class NoActiveCheckIn(NotFoundError):
    pass


class NoActiveBreak(NotFoundError):
    pass


class EmployeeNotFound(NotFoundError):
    def __init__(self, employee_id: int):
        super().__init__(f"Employee {employee_id} not found")
        self.employee_id = employee_id


class AttendanceNotFound(NotFoundError):
    pass


class PayrollNotFound(NotFoundError):
    pass
