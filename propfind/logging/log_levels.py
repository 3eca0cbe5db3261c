"""
Custom log levels used across services.
"""
from enum import Enum


class LogLevel(str, Enum):
    WARNING = "warning"
    INFO = "info"
    REQUEST = "request"
    ERROR = "error"
    SLOW = "slow"
    GREAT = "great"
