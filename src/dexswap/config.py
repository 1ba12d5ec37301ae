"""Application configuration using pydantic-settings.

Credentials and endpoints are read once from the environment (or ``.env``)
and never mutated afterwards.
"""

import re
from decimal import Decimal
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexswap.aggregator.tokens import NATIVE_TOKEN, SUPPORTED_CHAIN_IDS, TOKEN_ADDRESSES
from dexswap.errors import ConfigurationError

ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
PRIVATE_KEY_RE = re.compile(r"(0x)?[a-fA-F0-9]{64}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="127.0.0.1", description="Web server host")
    api_port: int = Field(default=8000, description="Web server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # Aggregator
    # ======================
    api_base_url: str = Field(
        default="https://www.okx.com/api/v5/dex/aggregator",
        description="Swap aggregator base URL (path prefix is part of the signature)",
    )
    api_key: SecretStr = Field(default=SecretStr(""), description="Aggregator access key")
    secret_key: SecretStr = Field(default=SecretStr(""), description="Aggregator HMAC secret")
    passphrase: SecretStr = Field(default=SecretStr(""), description="Aggregator passphrase")
    request_timeout: float = Field(default=15.0, gt=0, description="HTTP timeout in seconds")

    # ======================
    # Swap defaults
    # ======================
    chain_id: str = Field(default="1", description="EVM chain id")
    from_token_address: str = Field(
        default=NATIVE_TOKEN,
        description="Default source token (native sentinel)",
    )
    to_token_address: str = Field(
        default=TOKEN_ADDRESSES["ethereum"]["USDC"],
        description="Default destination token (USDC)",
    )
    default_slippage: Decimal = Field(
        default=Decimal("0.03"), gt=0, lt=1, description="Default slippage tolerance (3%)"
    )

    # ======================
    # Wallet / node
    # ======================
    user_wallet_address: str = Field(default="", description="Wallet that signs and receives")
    private_key: SecretStr = Field(default=SecretStr(""), description="Wallet private key (hex)")
    rpc_url: str = Field(default="https://eth.llamarpc.com", description="EVM JSON-RPC URL")
    rpc_timeout: float = Field(default=30.0, gt=0, description="RPC request timeout in seconds")
    gas_multiplier: Decimal = Field(
        default=Decimal("1.5"), ge=1, description="Safety factor applied to gas limit and price"
    )
    confirmation_timeout: float = Field(
        default=120.0, gt=0, description="Maximum seconds to wait for inclusion"
    )
    confirmation_poll_interval: float = Field(
        default=2.0, gt=0, description="Seconds between receipt polls"
    )

    # ======================
    # Safety Guards
    # ======================
    dry_run: bool = Field(default=True, description="Sign but never broadcast transactions")

    def missing_credentials(self) -> list[str]:
        """Settings that are absent, malformed or unsupported."""
        problems = []
        for name in ("api_key", "secret_key", "passphrase"):
            if not getattr(self, name).get_secret_value():
                problems.append(f"{name.upper()} is not set")

        key = self.private_key.get_secret_value()
        if not key:
            problems.append("PRIVATE_KEY is not set")
        elif not PRIVATE_KEY_RE.fullmatch(key):
            problems.append("PRIVATE_KEY must be 32 bytes of hex")

        if not self.user_wallet_address:
            problems.append("USER_WALLET_ADDRESS is not set")
        elif not ADDRESS_RE.fullmatch(self.user_wallet_address):
            problems.append("USER_WALLET_ADDRESS is not a valid address")

        if self.chain_id not in SUPPORTED_CHAIN_IDS:
            problems.append(f"CHAIN_ID {self.chain_id} is not supported")

        for name in ("from_token_address", "to_token_address"):
            if not ADDRESS_RE.fullmatch(getattr(self, name)):
                problems.append(f"{name.upper()} is not a valid address")

        if not self.api_base_url.startswith(("https://", "http://")):
            problems.append("API_BASE_URL must be an http(s) URL")
        if not self.rpc_url:
            problems.append("RPC_URL is not set")
        return problems

    def validate_credentials(self) -> None:
        """Raise ConfigurationError if any credential is missing or malformed."""
        problems = self.missing_credentials()
        if problems:
            raise ConfigurationError("; ".join(problems))

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "aggregator": {
                "base_url": self.api_base_url,
                "api_key": self._redact(self.api_key),
                "secret_key": self._redact(self.secret_key),
                "passphrase": self._redact(self.passphrase),
                "timeout": self.request_timeout,
            },
            "swap": {
                "chain_id": self.chain_id,
                "from_token": self.from_token_address,
                "to_token": self.to_token_address,
                "slippage": str(self.default_slippage),
                "gas_multiplier": str(self.gas_multiplier),
            },
            "wallet": {
                "address": self.user_wallet_address or "(not set)",
                "private_key": self._redact(self.private_key),
                "rpc": self._redact_url(self.rpc_url),
                "confirmation_timeout": self.confirmation_timeout,
            },
        }

    @staticmethod
    def _redact(value: SecretStr) -> str:
        return "***" if value.get_secret_value() else "(not set)"

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact credentials and API keys embedded in an RPC URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                _, host = rest.rsplit("@", 1)
                return f"{proto}://***@{host}"
        # Hosted RPC providers put the key in the path
        if "://" in url:
            proto, rest = url.split("://", 1)
            host, _, path = rest.partition("/")
            if path:
                return f"{proto}://{host}/***"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
