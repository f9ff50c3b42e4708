"""Attendance tracking and payroll service."""
