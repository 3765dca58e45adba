"""
errors.py - Typed Errors
Common: Shared utilities and models

InvalidInputError    - bad caller input, never retried internally
CryptoOperationError - digest / cipher / entropy failure, caller may retry
AuthFlowError        - login / registration flow refused to continue
"""


class ZKPAuthError(Exception):
    """Base class for every error raised by this project."""


class InvalidInputError(ZKPAuthError, ValueError):
    pass


class CryptoOperationError(ZKPAuthError, RuntimeError):
    pass


class AuthFlowError(ZKPAuthError):
    pass
