"""Utility modules for genosim."""

from genosim.utils.logging_utils import get_logger, parse_log_level, setup_logger
from genosim.utils.validation import (
    check_output_paths,
    validate_file_exists,
    validate_positive_int,
    validate_probability,
)
