"""
Constants Module

Defines constants used across the memos-sync project.
"""

from enum import Enum


# =============================================================================
# File Name Formats
# =============================================================================

class FilenameFormat(str, Enum):
    """How a note's local file name is derived."""
    ID = "id"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TITLE = "title"


# =============================================================================
# Directory Layout
# =============================================================================

MEMOS_DIR = "memos"
RESOURCES_DIR = "resources"
NOTE_SUFFIX = ".md"


# =============================================================================
# Settings Defaults
# =============================================================================

DEFAULT_FOLDER_TO_SYNC = "Memos Sync"
DEFAULT_FILE_NAME_FORMAT = FilenameFormat.ID
DEFAULT_INTERVAL = 0

# Sync interval choices in minutes (0 = disabled)
VALID_INTERVALS = (0, 5, 15, 30, 60, 120)


# =============================================================================
# Memos API
# =============================================================================

MEMO_ROW_STATUS_ARCHIVED = "ARCHIVED"

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)
