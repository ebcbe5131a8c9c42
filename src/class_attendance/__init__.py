"""Class Attendance package.

Organized by feature modules (sessions, attendance, approvals, roster, ...)
with a thin Flask controller layer over service/repository layers.
"""
