"""HR System package.

Feature modules (employees, attendance, payroll) each carry a domain model,
a repository interface with its MySQL implementation, a service layer and a
thin Flask controller.
"""
