import logging
import sys
from stackideator.utils.config import config

# Configure root logger - set to ERROR by default to suppress all non-StackIdeator logs
logging.basicConfig(level=logging.ERROR, format=config.log_format, stream=sys.stdout)

# Configure only the StackIdeator logger to show logs at the configured level
stackideator_logger = logging.getLogger('stackideator')
stackideator_logger.setLevel(config.log_level)

# Create a dedicated handler for StackIdeator logs
stackideator_handler = logging.StreamHandler(sys.stdout)
stackideator_handler.setFormatter(logging.Formatter(config.log_format))

# Remove any existing handlers to avoid duplicate logs
if stackideator_logger.handlers:
    for handler in list(stackideator_logger.handlers):
        stackideator_logger.removeHandler(handler)

stackideator_logger.addHandler(stackideator_handler)

# Prevent StackIdeator logs from propagating to the root logger to avoid duplication
stackideator_logger.propagate = False

# google-genai and its HTTP transport log every generation request at INFO
CLIENT_LOGGERS = ('google_genai', 'httpx', 'httpcore')
for client_logger in CLIENT_LOGGERS:
    logging.getLogger(client_logger).setLevel(config.client_log_level)

# Get our specific module logger
logger = logging.getLogger(__name__)
