"""Numeric status codes of the dictionary server protocol."""

from enum import IntEnum


class ResponseCode(IntEnum):
    """Response codes sent by a dictionary server."""

    DATABASE_LIST = 110
    STRATEGY_LIST = 111
    DATABASE_INFO = 112
    HELP = 113
    SERVER_INFO = 114

    DEFINITIONS_FOUND = 150
    DEFINITION_FOLLOWS = 151
    MATCHES_FOUND = 152

    STATUS = 210

    HELLO = 220
    GOODBYE = 221

    AUTH_OK = 230

    OK = 250

    TEMPORARILY_UNAVAILABLE = 420
    SHUTTING_DOWN = 421

    SYNTAX_ERROR = 500
    ILLEGAL_PARAM = 501
    COMMAND_NOT_IMPLEMENTED = 502
    PARAM_NOT_IMPLEMENTED = 503

    ACCESS_DENIED = 530
    AUTH_DENIED = 531
    UNKNOWN_MECH = 532

    INVALID_DB = 550
    INVALID_STRATEGY = 551
    NO_MATCH = 552
    NO_DATABASES = 554
    NO_STRATEGIES = 555

    @property
    def is_error(self) -> bool:
        """True for codes in the 4xx and 5xx ranges."""
        return self >= 400