"""
Runtime configuration parameters for cricauction.

Defines replication endpoints, polling/tick cadence and local paths.
Auction rules (tiers, purse, squad size) live in the replicated
AuctionConfig instead, since every viewer must see the same values.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "CRICAUCTION_"

# Fixed public document shared by every participant
DEFAULT_STORE_URL = "https://jsonblob.com/api/jsonBlob/1344446549230534656"


@dataclass
class AuctionSettings:
    """Process-wide runtime settings"""

    # Replication
    store_url: str = DEFAULT_STORE_URL
    poll_interval: float = 2.0  # Seconds between viewer fetches
    request_timeout: float = 5.0  # HTTP timeout per publish/fetch
    monotonic_polling: bool = False  # Discard snapshots not newer than the last applied

    # Countdown
    tick_interval: float = 1.0  # Seconds per countdown step

    # Paths
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")

    def __post_init__(self):
        """Create necessary directories"""
        self.data_dir = Path(self.data_dir).expanduser()
        self.log_dir = Path(self.log_dir).expanduser()
        self.data_dir.mkdir(exist_ok=True, parents=True)


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def load_config(env_file: Optional[str] = None, **overrides) -> AuctionSettings:
    """
    Load settings from the environment (and an optional .env file).

    Recognized variables: CRICAUCTION_STORE_URL, CRICAUCTION_POLL_INTERVAL,
    CRICAUCTION_REQUEST_TIMEOUT, CRICAUCTION_MONOTONIC_POLLING,
    CRICAUCTION_TICK_INTERVAL, CRICAUCTION_DATA_DIR, CRICAUCTION_LOG_DIR.

    Args:
        env_file: Optional path to a dotenv file
        **overrides: Explicit values that win over the environment

    Returns:
        AuctionSettings instance
    """
    load_dotenv(dotenv_path=env_file, override=False)

    values = {}
    if _env("STORE_URL"):
        values["store_url"] = _env("STORE_URL")
    if _env("POLL_INTERVAL"):
        values["poll_interval"] = float(_env("POLL_INTERVAL"))
    if _env("REQUEST_TIMEOUT"):
        values["request_timeout"] = float(_env("REQUEST_TIMEOUT"))
    if _env("MONOTONIC_POLLING"):
        values["monotonic_polling"] = _env_bool(_env("MONOTONIC_POLLING"))
    if _env("TICK_INTERVAL"):
        values["tick_interval"] = float(_env("TICK_INTERVAL"))
    if _env("DATA_DIR"):
        values["data_dir"] = Path(_env("DATA_DIR"))
    if _env("LOG_DIR"):
        values["log_dir"] = Path(_env("LOG_DIR"))

    values.update({k: v for k, v in overrides.items() if v is not None})
    return AuctionSettings(**values)
