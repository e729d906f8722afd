"""Attendance Tracker package.

This package is organized by feature modules (schedules, sessions, attendance,
jobs, ...) with a thin Flask controller layer and service/repository layers.
"""
