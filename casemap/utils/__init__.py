# casemap/utils/__init__.py

"""
通用工具模块

Logging and media (data URL) helpers shared by the core modules.
"""

from .logging import (
    setup_logging,
    log,
    logManager,
    log_function_call,
    log_performance,
    LOG_LEVELS,
)
from .media_codec import (
    DataUrl,
    mime_from_key,
    parse_data_url,
    to_data_url,
)


LOG_DEBUG = LOG_LEVELS['DEBUG']
LOG_INFO = LOG_LEVELS['INFO']
LOG_WARNING = LOG_LEVELS['WARNING']
LOG_ERROR = LOG_LEVELS['ERROR']
LOG_CRITICAL = LOG_LEVELS['CRITICAL']

__all__ = [
    # === module: 日志 ====
    'setup_logging',
    'log',
    'logManager',
    'log_function_call',
    'log_performance',
    'LOG_LEVELS',
    'LOG_DEBUG',
    'LOG_INFO',
    'LOG_WARNING',
    'LOG_ERROR',
    'LOG_CRITICAL',
    # === module: 媒体编码 ====
    'DataUrl',
    'mime_from_key',
    'parse_data_url',
    'to_data_url',
]
