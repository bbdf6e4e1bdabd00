"""Event Attendance package.

This package is organized by feature modules (attendance, sessions, storage, ...)
with a thin Flask controller layer over in-memory service/repository layers.
"""
