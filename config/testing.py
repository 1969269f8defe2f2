import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "daycare_test_db"),
    "pool_size": 0,
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"
LOG_FORMAT = "text"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

DEFAULT_ORGANIZATION_ID = 1
EXPIRY_LOOKAHEAD_DAYS = 1
SWEEP_ITEM_TIMEOUT_SECONDS = 5.0
