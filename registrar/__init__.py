"""
Registrar: an academic record engine.

Tracks students, instructors, courses and enrollments, computes weighted
grades, GPA and attendance, and persists everything to flat CSV files
between runs.
"""

__version__ = "1.0.0"
__author__ = "Registrar Development Team"
__description__ = "Academic record engine with CSV persistence"
