"""
Configuration classes for the MediaWiki gateway.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional

from mediawiki_gateway.version import __version__


class WarningPolicy(str, Enum):
    """What to do with a <warnings> element or an invalid page title."""

    RAISE = "raise"
    LOG_AND_CONTINUE = "log_and_continue"


@dataclass
class GatewayConfig:
    """Configuration for the MediaWiki gateway."""

    # Edit settings
    bot: bool = False
    warning_policy: WarningPolicy = WarningPolicy.RAISE

    # Query limits
    limit: int = 500  # results per list request
    max_results: int = 500  # total results per search

    # Server admission control
    maxlag: int = 5  # seconds

    # Retry configuration (503 Service Unavailable only)
    retry_count: int = 3  # original request plus two retries
    retry_delay: float = 10.0  # seconds

    # Rate limiting
    rate_limit_calls: int = 10  # calls per period
    rate_limit_period: float = 1.0  # seconds

    # Request settings
    timeout: float = 30.0  # seconds

    # User agent
    user_agent: str = f"mediawiki-gateway/{__version__}"

    # Custom headers
    headers: Dict[str, str] = field(default_factory=dict)

    # Logging
    log_level: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.warning_policy = WarningPolicy(self.warning_policy)

        if self.limit <= 0:
            raise ValueError("limit must be positive")

        if self.max_results <= 0:
            raise ValueError("max_results must be positive")

        if self.maxlag <= 0:
            raise ValueError("maxlag must be positive")

        if self.retry_count < 1:
            raise ValueError("retry_count must be at least 1")

        if self.retry_delay < 0:
            raise ValueError("retry_delay cannot be negative")

        if self.rate_limit_calls <= 0:
            raise ValueError("rate_limit_calls must be positive")

        if self.rate_limit_period <= 0:
            raise ValueError("rate_limit_period must be positive")

        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def ignore_warnings(self) -> bool:
        return self.warning_policy is WarningPolicy.LOG_AND_CONTINUE

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "bot": self.bot,
            "warning_policy": self.warning_policy.value,
            "limit": self.limit,
            "max_results": self.max_results,
            "maxlag": self.maxlag,
            "retry_count": self.retry_count,
            "retry_delay": self.retry_delay,
            "rate_limit_calls": self.rate_limit_calls,
            "rate_limit_period": self.rate_limit_period,
            "timeout": self.timeout,
            "user_agent": self.user_agent,
            "headers": self.headers.copy(),
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        """Create config from dictionary."""
        return cls(**data)
