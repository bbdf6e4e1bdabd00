SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "event_attendance_test",
}

SESSION_TIMEOUT_MINUTES = 30
DEMO_PASSWORDS = ("Demo123!", "Admin123!")

ATTENDANCE_SNAPSHOT_KEY = "attendanceData"
SESSION_SNAPSHOT_KEY = "userSession"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

# Writes are applied inline so tests can assert on the store right away
PERSIST_IN_BACKGROUND = False

AUTO_INIT_DB = False
SEED_DEMO_DATA = False
