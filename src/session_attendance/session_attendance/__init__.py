"""Session Attendance package.

Instructors open short-lived attendance sessions for a subject; enrolled
students check themselves in against them. Organized by feature modules
(sessions, attendance, enrollments, notifications) with a thin Flask
controller layer over service/repository layers.
"""
