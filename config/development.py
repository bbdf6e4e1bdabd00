import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# memory | mysql
STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "event_attendance"),
}

SESSION_TIMEOUT_MINUTES = int(os.getenv("SESSION_TIMEOUT_MINUTES", "30"))
DEMO_PASSWORDS = ("Demo123!", "Admin123!")

ATTENDANCE_SNAPSHOT_KEY = "attendanceData"
SESSION_SNAPSHOT_KEY = "userSession"

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

PERSIST_IN_BACKGROUND = True

# If enabled and STORE_BACKEND=mysql, the kv_store table is created on startup
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: demo events and profiles for local runs
SEED_DEMO_DATA = bool(int(os.getenv("SEED_DEMO_DATA", "1")))
