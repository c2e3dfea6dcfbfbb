import os
from dataclasses import dataclass
from typing import Optional

# Configuration constants
HIBP_API_URL = "https://api.pwnedpasswords.com/range/"
HIBP_MODE = "ntlm"  # 32 char hashes, so the suffix is always 27 chars
CACHE_DIR = "cache"
MAX_IN_FLIGHT = 10
USER_AGENT = "pwned-range-cache"


def _optional_float(value):
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass(frozen=True)
class CheckerConfig:
    """
    Settings for the range checker.
    timeout is passed straight to requests; None waits forever.
    """
    cache_dir: str = CACHE_DIR
    api_url: str = HIBP_API_URL
    mode: str = HIBP_MODE
    max_in_flight: int = MAX_IN_FLIGHT
    user_agent: str = USER_AGENT
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls, **overrides):
        """
        Builds a config from PWNED_* environment variables.
        Keyword overrides win over the environment.
        """
        values = {
            "cache_dir": os.environ.get("PWNED_CACHE_DIR", CACHE_DIR),
            "api_url": os.environ.get("PWNED_API_URL", HIBP_API_URL),
            "mode": os.environ.get("PWNED_MODE", HIBP_MODE),
            "max_in_flight": int(os.environ.get("PWNED_MAX_IN_FLIGHT", MAX_IN_FLIGHT)),
            "user_agent": os.environ.get("PWNED_USER_AGENT", USER_AGENT),
            "timeout": _optional_float(os.environ.get("PWNED_TIMEOUT")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        if values["max_in_flight"] < 1:
            raise ValueError("max_in_flight must be at least 1")
        return cls(**values)
