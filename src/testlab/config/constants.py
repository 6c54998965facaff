# config/constants.py

"""Constants for the test-suite execution engine."""

# Default HTTP client configuration
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_SCHEME = "https://"

# HTTP Status Code Categories
SUCCESS_STATUS_CODES = range(200, 300)
FLOW_SUCCESS_STATUS_CODES = range(200, 400)

# Suite settings defaults
DEFAULT_CONCURRENT_CALLS = 1
DEFAULT_DELAY_BETWEEN_CALLS = 0
DEFAULT_STOP_ON_FAILURE = False

# Environment treated as the global variable tier (case-insensitive)
GLOBAL_ENVIRONMENT_NAME = "global"

# Content types implied by body mode / raw language
RAW_LANGUAGE_CONTENT_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "html": "text/html",
    "text": "text/plain",
    "csv": "text/csv",
}
DEFAULT_RAW_CONTENT_TYPE = "text/plain"
URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"
BINARY_CONTENT_TYPE = "application/octet-stream"

# Response content types returned as text rather than base64
TEXT_CONTENT_TYPE_MARKERS = (
    "text/",
    "json",
    "xml",
    "javascript",
    "x-www-form-urlencoded",
    "html",
    "csv",
    "yaml",
)

# Built-in validation used when neither the item nor the test case has one
DEFAULT_VALIDATION_RULE_ID = "default-status-success"
DEFAULT_VALIDATION_RULE_NAME = "Status is Success"

# Error Messages
ERROR_MESSAGES = {
    "no_enabled_items": "Test suite has no enabled items",
    "tests_failed": "One or more tests failed",
    "cancelled": "Test suite was cancelled",
    "unresolved": "Unresolved placeholders: {names}",
    "request_not_found": "Request not found: {reference_id}",
    "flow_not_found": "Flow not found: {reference_id}",
    "global_rule_not_found": "Global rule with ID '{rule_id}' not found",
    "unexpected": "Unexpected error: {error}",
}
