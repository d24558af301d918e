"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv

from blockfees.fees.models import FeeParameters


# Load environment variables from .env file
load_dotenv()

FEE_PARAMETER_ENV_VARS = {
    "base_fee_max_change_denominator": "BASE_FEE_MAX_CHANGE_DENOMINATOR",
    "eco_priority_fee": "ECO_PRIORITY_FEE_WEI",
    "standard_priority_fee": "STANDARD_PRIORITY_FEE_WEI",
    "fast_priority_fee": "FAST_PRIORITY_FEE_WEI",
    "max_fee_base_multiplier": "MAX_FEE_BASE_MULTIPLIER",
    "elasticity_multiplier": "ELASTICITY_MULTIPLIER",
}
"""FeeParameters field name -> environment variable overriding it"""


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from blockfees.helpers.config import get_required_env

        rpc_url = get_required_env("ETH_RPC_URL")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable.

    Accepts decimal or 0x-prefixed hex, so wei amounts can be written either way.

    Args:
        key: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        Parsed integer

    Raises:
        ValueError: If the variable is set but is not an integer
    """
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value, 0)
    except ValueError:
        msg = f"{key} must be an integer, got {value!r}"
        raise ValueError(msg) from None


def get_required_url(
    key: str, url: str | None = None, description: str | None = None
) -> str:
    """Get a URL from a parameter, falling back to an environment variable.

    Args:
        key: Environment variable name
        url: Optional URL to use directly
        description: Human readable name used in the error message

    Returns:
        The URL

    Raises:
        ValueError: If neither the parameter nor the environment variable is set
    """
    if url:
        return url

    env_url = os.getenv(key)
    if not env_url:
        msg = f"{description or key} must be provided or set in {key}"
        raise ValueError(msg)

    return env_url


def get_eth_rpc_url(rpc_url: str | None = None) -> str:
    """Get Ethereum RPC URL from parameter or environment.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        Ethereum RPC URL

    Raises:
        ValueError: If RPC URL is not provided and ETH_RPC_URL env var is not set

    Example:
        ```python
        from blockfees.helpers.config import get_eth_rpc_url

        # Get from environment
        rpc_url = get_eth_rpc_url()

        # Or provide explicitly
        rpc_url = get_eth_rpc_url("https://eth.llamarpc.com")
        ```
    """
    return get_required_url("ETH_RPC_URL", rpc_url, "Ethereum RPC URL")


def get_eth_ws_url(ws_url: str | None = None) -> str:
    """Get Ethereum WebSocket URL from parameter or environment.

    Args:
        ws_url: Optional WebSocket URL to use directly

    Returns:
        Ethereum WebSocket URL

    Raises:
        ValueError: If WebSocket URL is not provided and ETH_WS_URL env var is not set
    """
    return get_required_url("ETH_WS_URL", ws_url, "Ethereum WebSocket URL")


def get_database_url() -> str:
    """Get the database URL from environment variables.

    Returns:
        str: PostgreSQL database URL for the async psycopg driver

    Raises:
        ValueError: If required environment variables are not set
    """
    postgre_host = get_required_env("POSTGRE_HOST")
    postgre_port = get_optional_env("POSTGRE_PORT", "5432")
    postgre_user = get_required_env("POSTGRE_USER")
    postgre_password = get_required_env("POSTGRE_PASSWORD")
    postgre_db = get_required_env("POSTGRE_DB")

    return (
        "postgresql+psycopg://"
        f"{postgre_user}:{postgre_password}"
        f"@{postgre_host}:{postgre_port}"
        f"/{postgre_db}"
    )


def get_fee_parameters() -> FeeParameters:
    """Build fee parameters, letting environment variables override the defaults.

    Returns:
        FeeParameters instance. With no variables set it equals the defaults.

    Raises:
        ValueError: If a variable is not an integer or the resulting
            parameters are inconsistent (e.g. eco tier above fast tier)
    """
    defaults = FeeParameters()
    overrides = {
        field: get_int_env(env_var, getattr(defaults, field))
        for field, env_var in FEE_PARAMETER_ENV_VARS.items()
    }
    return FeeParameters(**overrides)


__all__ = [
    "FEE_PARAMETER_ENV_VARS",
    "get_database_url",
    "get_eth_rpc_url",
    "get_eth_ws_url",
    "get_fee_parameters",
    "get_int_env",
    "get_optional_env",
    "get_required_env",
    "get_required_url",
]
