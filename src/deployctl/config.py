"""Environment-based configuration for the deployctl CLI."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """deployctl configuration.

    All settings can be overridden via environment variables with
    DEPLOYCTL_ prefix. For example:
        DEPLOYCTL_HOST=https://ece.example.com:12443/api/v1
        DEPLOYCTL_API_KEY=...

    Only the CLI reads these. Library code receives every value through
    its arguments.
    """

    # Control-plane API
    host: str = "https://localhost:12443/api/v1"
    timeout: float = 30.0
    insecure: bool = False

    # Authentication, api_key wins over user/password
    api_key: str = ""
    user: str = ""
    password: str = ""

    region: str = "ece-region"

    # Change tracking
    poll_frequency: float = 2.0
    max_retries: int = 3

    verbose: bool = False

    model_config = {"env_prefix": "DEPLOYCTL_"}
