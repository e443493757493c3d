"""Chain endpoint and contract address configuration."""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import is_hex_address

from .env import optional_env, optional_env_float, require_env_var
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

# Sepolia deployment of the GreenTrace core contract and the GreenTales NFT
SEPOLIA_GREENTRACE_ADDRESS = "0x141B2c6Df6AE9863f1cD8FC4624d165209b9c18c"
SEPOLIA_NFT_ADDRESS = "0x3456a42043955B1626F6353936c0FEfCd1cB5f1c"

RPC_TIMEOUT_SECONDS = 15.0
DEFAULT_POLL_INTERVAL_SECONDS = 4.0


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """Where to read contract state and logs from."""

    rpc_url: str
    greentrace_address: str
    nft_address: str
    resilience: ResilienceConfig
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS


def default_rpc_resilience(rpc_url: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="json-rpc",
        base_url=rpc_url,
        timeout_seconds=RPC_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={"Content-Type": "application/json"},
    )


def _address_setting(name: str, default: str) -> str:
    value = optional_env(name) or default
    if not is_hex_address(value):
        raise ConfigurationError(f"{name} is not a valid address: {value!r}")
    return value


def get_chain_config(*, resilience: ResilienceConfig | None = None) -> ChainConfig:
    rpc_url = require_env_var("GREENTRACE_RPC_URL")
    return ChainConfig(
        rpc_url=rpc_url,
        greentrace_address=_address_setting(
            "GREENTRACE_CONTRACT_ADDRESS", SEPOLIA_GREENTRACE_ADDRESS
        ),
        nft_address=_address_setting("GREENTRACE_NFT_ADDRESS", SEPOLIA_NFT_ADDRESS),
        resilience=resilience or default_rpc_resilience(rpc_url),
        poll_interval_seconds=optional_env_float(
            "GREENTRACE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_SECONDS
        ),
    )
