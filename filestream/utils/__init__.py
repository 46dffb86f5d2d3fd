# Utils package
from . import error_handler, exceptions, file_utils, logger

# Define what should be exported from this package
__all__ = ["error_handler", "exceptions", "file_utils", "logger"]
