"""Attendance geofencing and shift engine.

This package is organized by feature modules (geo, locations, shifts,
authorization, attendance, review, sweep, ...) with a thin Flask controller
layer over service/repository layers.
"""
