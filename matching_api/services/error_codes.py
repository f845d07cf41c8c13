from enum import Enum


class ErrorCode(str, Enum):
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_JOB_TYPE = "INVALID_JOB_TYPE"
    INVALID_TARGET_ID = "INVALID_TARGET_ID"
    EMBEDDING_PROVIDER_NOT_CONFIGURED = "EMBEDDING_PROVIDER_NOT_CONFIGURED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
