"""Constants for studyhub.

This module centralizes all magic numbers and default values used throughout the application.
"""

# Recurrence expansion
MAX_EXPANSION_INSTANCES = 1000  # Hard cap per expand() call
DEFAULT_HORIZON_DAYS = 365  # Default window for newly created series
PREVIEW_INSTANCE_LIMIT = 10
NEXT_OCCURRENCE_LOOKAHEAD_DAYS = 366

# Provenance marker embedded in ScheduleEvent.description
RECURRENCE_MARKER_PREFIX = "__RECURRENCE_PATTERN__"
RECURRENCE_MARKER_SUFFIX = "__END_PATTERN__"

# Highlight fallback extraction (rendered markup)
FALLBACK_MAX_ATTEMPTS = 3
FALLBACK_INITIAL_DELAY_SEC = 0.1
FALLBACK_DELAY_STEP_SEC = 0.2  # Delay before attempt N+1 is N * step

# Highlight markup
HIGHLIGHT_MARK_NAME = "numberedHighlight"
HIGHLIGHT_ID_ATTR = "data-highlight-id"
HIGHLIGHT_CATEGORY_ATTR = "data-highlight-category"
HIGHLIGHT_NUMBER_ATTR = "data-highlight-number"
