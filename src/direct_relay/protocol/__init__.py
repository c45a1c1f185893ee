from .constants import (
    ERR_ALREADY_REGISTERED,
    ERR_INVALID_FORMAT,
    ERR_NOT_REGISTERED,
    ERR_RECIPIENT_NOT_FOUND,
    ERR_RECIPIENT_UNAVAILABLE,
    ERR_UNRECOGNIZED,
    ERR_USERNAME_TAKEN,
    T_DELIVERED,
    T_ERROR,
    T_REGISTERED,
)
from .messages import (
    Delivered,
    DeliveryRequest,
    ErrorReply,
    Forwarded,
    InvalidFrame,
    Registered,
    RegisterRequest,
    dump_frame,
    parse_frame,
    utc_timestamp,
)

__all__ = [
    "T_REGISTERED",
    "T_ERROR",
    "T_DELIVERED",
    "ERR_INVALID_FORMAT",
    "ERR_USERNAME_TAKEN",
    "ERR_NOT_REGISTERED",
    "ERR_RECIPIENT_NOT_FOUND",
    "ERR_ALREADY_REGISTERED",
    "ERR_UNRECOGNIZED",
    "ERR_RECIPIENT_UNAVAILABLE",
    "RegisterRequest",
    "DeliveryRequest",
    "Registered",
    "ErrorReply",
    "Delivered",
    "Forwarded",
    "InvalidFrame",
    "dump_frame",
    "parse_frame",
    "utc_timestamp",
]
