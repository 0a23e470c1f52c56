import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/digest_db")

# Application Metadata
PROJECT_NAME = "User Digest Service"
VERSION = "1.0.0"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Outbox Dispatcher Configuration
POLLING_INTERVAL = float(os.getenv("POLLING_INTERVAL", 5)) # Dispatcher checks for new events every N seconds
MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", 3)) # Attempts before an event is given up on
BATCH_SIZE = int(os.getenv("BATCH_SIZE", 10)) # How many events to fetch per poll
OUTBOX_DISPATCHER_ENABLED = os.getenv("OUTBOX_DISPATCHER_ENABLED", "true").lower() in ("1", "true", "yes")

# Weekly digest trigger. Required in production, optional in development.
CRON_SECRET = os.getenv("CRON_SECRET", "")

# Simulated latency of the notification sender
EMAIL_SEND_DELAY = float(os.getenv("EMAIL_SEND_DELAY", 0.5))
