"""Constants for supertodo.

This module centralizes field bounds and default values used throughout the application.
"""

import re


# Task field bounds
TASK_TITLE_MAX_LENGTH = 200
TASK_DESCRIPTION_MAX_LENGTH = 1000

# Category field bounds
CATEGORY_NAME_MAX_LENGTH = 50
CATEGORY_DESCRIPTION_MAX_LENGTH = 200

# Due dates are syntactically checked only (zero-padded, so string order == date order)
DUE_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# Seeded on first access to the category collection, in this order
DEFAULT_CATEGORIES = (
    ("Work", "Tasks related to job and professional projects"),
    ("Personal", "Personal tasks and errands"),
    ("Shopping", "Shopping lists and purchases"),
    ("Health", "Health and wellness tasks"),
)

# Persistence
DEFAULT_NAMESPACE = "supertodo"
DEFAULT_STORAGE_QUOTA_BYTES = 5 * 1024 * 1024

# Backup document
EXPORT_FORMAT_VERSION = "1.0"
