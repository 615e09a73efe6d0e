"""Constants for the HTTP fetch layer."""

# Status code bounds
HTTP_STATUS_MIN = 100
HTTP_STATUS_MAX = 599
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# Timeouts (milliseconds)
DEFAULT_TIMEOUT_MS = 10_000
MAX_TIMEOUT_MS = 600_000

ALLOWED_SCHEMES = frozenset({"http", "https"})

DEFAULT_USER_AGENT = "http-fetch/0.1.0"
DEFAULT_ENCODING = "utf-8"
