PROJECT_NAME = "Requisition Workflow"
API_V1_STR = "/api/v1"

ORG_CONTEXT_HEADER = "X-Organization-Id"
CLEANUP_SECRET_HEADER = "x-cleanup-secret"

TRIAL_PERIOD_DAYS = 14

# Rate limits: (max attempts, window in seconds)
SIGNUP_RATE_LIMIT = (5, 60 * 60)
LOGIN_EMAIL_RATE_LIMIT = (5, 30 * 60)
LOGIN_IP_RATE_LIMIT = (15, 15 * 60)
RATE_LIMIT_LOG_RETENTION_HOURS = 24

MIN_PASSWORD_LENGTH = 8
MIN_SLUG_LENGTH = 3
MAX_SLUG_LENGTH = 50

RESERVED_SLUGS = frozenset(
    {
        "admin", "api", "app", "www", "dashboard", "login", "signup", "register",
        "default", "system", "support", "help", "billing", "settings", "account",
        "auth", "oauth", "sso", "mail", "email", "static", "assets", "cdn",
        "status", "health", "metrics", "webhook", "webhooks", "callback",
        "test", "demo", "staging", "production", "dev", "development",
        "pcm", "passion", "christian", "ministries",
    }
)
