"""
Custom logging module with per-level formatting.
"""
from propfind.logging.custom_logger import CustomLogger, get_logger
from propfind.logging.log_levels import LogLevel

__all__ = [
    'CustomLogger',
    'LogLevel',
    'get_logger',
]
