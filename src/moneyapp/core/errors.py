"""Error codes and user-friendly messages.

Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

from dataclasses import dataclass


@dataclass
class ErrorDefinition:
    """Definition of a single error type."""

    code: str
    message: str
    user_message: str
    suggestion: str
    retry_allowed: bool


ERROR_CATALOG: dict[str, dict] = {
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request failed validation",
        "user_message": "Invalid input data",
        "suggestion": "Please check your input and try again.",
        "retry_allowed": True,
    },
    "VAL_002": {
        "code": "VAL_002",
        "message": "Invalid category name",
        "user_message": "That category name isn't valid.",
        "suggestion": "Use a non-empty category name of at most 100 characters.",
        "retry_allowed": False,
    },
    "BUDGET_001": {
        "code": "BUDGET_001",
        "message": "Budget amount must be greater than zero",
        "user_message": "Budget amount must be greater than 0.",
        "suggestion": "Enter a positive budget amount.",
        "retry_allowed": False,
    },
    "BUDGET_002": {
        "code": "BUDGET_002",
        "message": "Budget window overlaps an existing active budget for the same category",
        "user_message": "You already have an overlapping budget for this category.",
        "suggestion": "Change the start date or period, or deactivate the other budget.",
        "retry_allowed": False,
    },
    "BUDGET_003": {
        "code": "BUDGET_003",
        "message": "Budget not found",
        "user_message": "We couldn't find this budget.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "BUDGET_004": {
        "code": "BUDGET_004",
        "message": "Budget end date precedes start date",
        "user_message": "The budget end date must be after the start date.",
        "suggestion": "Pick an end date after the start date.",
        "retry_allowed": False,
    },
    "TXN_001": {
        "code": "TXN_001",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "GOAL_001": {
        "code": "GOAL_001",
        "message": "Savings goal not found",
        "user_message": "We couldn't find this savings goal.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "GOAL_002": {
        "code": "GOAL_002",
        "message": "Savings goal amount must be greater than zero",
        "user_message": "Amounts must be greater than 0.",
        "suggestion": "Enter a positive amount.",
        "retry_allowed": False,
    },
    "RULE_001": {
        "code": "RULE_001",
        "message": "Invalid regular expression in category rule",
        "user_message": "That pattern isn't a valid regular expression.",
        "suggestion": "Fix the pattern or create a plain text rule instead.",
        "retry_allowed": False,
    },
    "RULE_002": {
        "code": "RULE_002",
        "message": "Category rule not found",
        "user_message": "We couldn't find this rule.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "SYNC_001": {
        "code": "SYNC_001",
        "message": "Sync already in progress for user",
        "user_message": "A sync is already running.",
        "suggestion": "Wait for the current sync to finish.",
        "retry_allowed": True,
    },
    "SYNC_002": {
        "code": "SYNC_002",
        "message": "User has no provider connection",
        "user_message": "No bank account is connected.",
        "suggestion": "Connect a bank account first.",
        "retry_allowed": False,
    },
    "SYNC_003": {
        "code": "SYNC_003",
        "message": "Reconciliation of fetched data failed",
        "user_message": "We couldn't save your latest bank data.",
        "suggestion": "We'll retry on the next scheduled sync.",
        "retry_allowed": True,
    },
    "PROV_001": {
        "code": "PROV_001",
        "message": "Provider request failed",
        "user_message": "We couldn't reach your bank right now.",
        "suggestion": "We'll retry on the next scheduled sync.",
        "retry_allowed": True,
    },
    "PROV_002": {
        "code": "PROV_002",
        "message": "Provider access credential invalid or expired",
        "user_message": "Your bank connection needs to be re-authorized.",
        "suggestion": "Reconnect your bank account.",
        "retry_allowed": False,
    },
    "PROV_003": {
        "code": "PROV_003",
        "message": "Provider returned a malformed response",
        "user_message": "We received unexpected data from your bank.",
        "suggestion": "Please try again later.",
        "retry_allowed": True,
    },
    "AUTH_001": {
        "code": "AUTH_001",
        "message": "Invalid admin key",
        "user_message": "You are not allowed to perform this action.",
        "suggestion": "Provide a valid admin key.",
        "retry_allowed": False,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "A database error occurred",
        "suggestion": "Please try again later",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Resource already exists",
        "user_message": "This record already exists",
        "suggestion": "Please check if the record was already created",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Internal server error",
        "user_message": "An unexpected error occurred",
        "suggestion": "Please try again later or contact support",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Unknown codes resolve to a generic retryable error instead of raising.
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    return get_error(error_code)["user_message"]


def get_suggestion(error_code: str) -> str:
    return get_error(error_code)["suggestion"]


def is_retryable(error_code: str) -> bool:
    return get_error(error_code)["retry_allowed"]
