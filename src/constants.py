"""Infrastructure and technical constants."""

from typing import Final

# Technical configuration constants
DEFAULT_PORT: Final = 8000
DEFAULT_EVENT_STREAM_QUEUE_SIZE: Final = 16
DEFAULT_EVENT_STREAM_KEEPALIVE_SECONDS: Final = 15
DEFAULT_METRICS_PORT: Final = 8080
