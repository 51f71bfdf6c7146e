"""Utility modules for LingoFlow.

This package provides utility functions for logging, path handling and string manipulation,
including the text digest used for cache keys.
"""

from utils.file_utils import FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["FileUtils", "FileUtilsError", "LoggerUtils", "StringUtils"]
