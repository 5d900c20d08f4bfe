"""Network configuration constants for the local API transport."""

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
API_PREFIX: str = "/api"
