"""Constants for data generation."""

# Row counts
DEFAULT_ROW_COUNT = 50
DEFAULT_MANY_COUNT = 1

# Retry and expansion limits
MAX_UNIQUE_ATTEMPTS = 1000
MAX_EXPANSION_ROUNDS = 50

# Built-in generator names
BUILTIN_GENERATORS = ("uuid", "date", "time", "timestamp")
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"

# Token syntax
TOKEN_MODIFIERS = "?!~"
LOOKUP_MODIFIER = "!"
CLEAN_MODIFIER = "~"
QUERY_MODIFIER = "?"
LIST_SEPARATOR = ";"
RANGE_SEPARATOR = ">"

# Key field synthesized on many-to-many join types
JOIN_KEY_FIELD = "id"
JOIN_KEY_TYPE = "uuid"
