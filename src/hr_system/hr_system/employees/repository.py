from __future__ import annotations

from typing import Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Read-only employee directory.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, employee_id: int) -> Employee | None:
        raise NotImplementedError

    def list_active(self, *, department: str | None = None) -> Sequence[Employee]:
        raise NotImplementedError
