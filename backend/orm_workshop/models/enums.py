"""
Enumerations shared by the ORM models and the DTOs.
"""

from enum import Enum


class UserEventType(str, Enum):
    """Kinds of account activity recorded as user events."""

    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    SIGNUP = "SIGNUP"
    PASSWORD_RESET = "PASSWORD_RESET"
    ACCOUNT_UPDATE = "ACCOUNT_UPDATE"
    ACCOUNT_DELETION = "ACCOUNT_DELETION"
    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    TWO_FACTOR_AUTHENTICATION = "TWO_FACTOR_AUTHENTICATION"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PROFILE_UPDATE = "PROFILE_UPDATE"
    USERNAME_CHANGE = "USERNAME_CHANGE"
    EMAIL_CHANGE = "EMAIL_CHANGE"
    PHONE_NUMBER_CHANGE = "PHONE_NUMBER_CHANGE"
