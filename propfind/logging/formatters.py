import logging
from propfind.logging.log_levels import LogLevel


class BaseFormatter(logging.Formatter):
    """Default format for levels without a dedicated formatter."""
    def __init__(self, fmt=None):
        super().__init__(fmt or '%(asctime)s - %(name)s - %(levelname)s - %(message)s')


class ErrorFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('[ERROR] %(name)s - %(message)s%(context)s')


class WarningFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('[WARNING] %(name)s - %(message)s%(context)s')


class InfoFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('[INFO] %(name)s - %(message)s%(context)s')


class RequestFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('[REQUEST] %(method)s %(path)s -> %(status_code)s (%(duration).3fs)%(context)s')


class SlowFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('[SLOW] %(name)s - %(message)s (%(duration).3fs > %(threshold).3fs)%(context)s')


class GreatFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('[GREAT] %(name)s - %(message)s%(context)s')


_FORMATTERS = {
    LogLevel.ERROR: ErrorFormatter,
    LogLevel.WARNING: WarningFormatter,
    LogLevel.INFO: InfoFormatter,
    LogLevel.REQUEST: RequestFormatter,
    LogLevel.SLOW: SlowFormatter,
    LogLevel.GREAT: GreatFormatter,
}


def get_formatter_for_level(level: LogLevel) -> logging.Formatter:
    """Return the formatter for a custom log level."""
    return _FORMATTERS.get(level, BaseFormatter)()
