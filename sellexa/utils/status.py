import enum


class Status(enum.Enum):
    SUCCESS = "00"
    FAILURE = "01"
    NOT_FOUND = "02"
    UNAUTHENTICATED = "03"
    UNKNOWN_ERROR = "99"
