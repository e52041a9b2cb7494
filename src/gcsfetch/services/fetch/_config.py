"""
Configuration constants for fetch service.
"""

# Chunk size for streaming copy
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB

# Listing results needed to tell a file from a directory
DETECT_LIST_LIMIT = 2

# Permissions for created parent directories
DIR_MODE = 0o755

# Suffix of the temporary file used for atomic writes
PARTIAL_SUFFIX = ".gcsfetch-part"
