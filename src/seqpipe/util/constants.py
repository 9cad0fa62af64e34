"""Config keys read with get_config().

Set via ~/.seqpipe.toml or SEQPIPE_* environment variables.
"""
# Logger setup used by configure_logger when no arguments are given
LOGGER_LEVELS = "logger_levels"
LOGGER_FILES = "logger_files"

# Text encoding for files read by the seqpipe command
SEQPIPE_ENCODING = "encoding"
DEFAULT_ENCODING = "utf-8"
