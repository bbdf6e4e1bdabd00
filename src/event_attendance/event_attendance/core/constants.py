"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_TIMEOUT_MINUTES = 30
DEFAULT_TOP_ATTENDEES = 10
DEFAULT_DEMO_PASSWORDS = ("Demo123!", "Admin123!")

ATTENDANCE_SNAPSHOT_KEY = "attendanceData"
SESSION_SNAPSHOT_KEY = "userSession"

DEFAULT_LANGUAGE = "es"
