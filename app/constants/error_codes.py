from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- QUOTATIONS ----------------
    QUOTATION_NOT_FOUND = "QUOTATION_NOT_FOUND"
    QUOTATION_NUMBER_EXISTS = "QUOTATION_NUMBER_EXISTS"
    QUOTATION_ALREADY_SUBMITTED = "QUOTATION_ALREADY_SUBMITTED"
    QUOTATION_EMPTY = "QUOTATION_EMPTY"
