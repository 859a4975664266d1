"""Attendance reconciliation package.

Organized by feature modules (staging, approval, reconciliation, attendance,
directory) with a thin Flask controller layer over service/repository layers.
Time handling lives in ``timekeeping`` and is shared by every feature.
"""
