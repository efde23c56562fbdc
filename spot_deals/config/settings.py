# spot_deals/config/settings.py

"""Central configuration for the spot_deals pipeline."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the spot_deals pipeline."""

    # --- Upstream endpoints ---
    REGIONS_URL: str = (
        "https://b0.p.awsstatic.com/locations/1.0/aws/current/"
        "locations.json"
    )
    PRICING_URL: str = "https://ec2.shop"
    PRIMARY_REGION_TYPE: str = "AWS Region"  # Excludes local/wavelength zones

    # --- Offer filtering (fixed) ---
    STORAGE_FILTER: str = "ebs"
    MIN_VCPUS: int = 4
    MAX_VCPUS: int = 32
    SAVINGS_THRESHOLD: float = 50.0     # Strictly greater than
    TOP_N: int = 5

    # --- Fetching ---
    REQUEST_TIMEOUT: int = int(
        os.getenv("SPOT_DEALS_REQUEST_TIMEOUT", "20")
    )                                   # Seconds per upstream request
    MAX_CONCURRENCY: int = int(
        os.getenv("SPOT_DEALS_MAX_CONCURRENCY", "8")
    )                                   # In-flight region fetches

    # --- Health check ---
    HEALTH_TIMEOUT: int = 10            # Seconds per probe
    HEALTH_SLOW_MS: float = 5000.0      # Latency above this is "slow"
    HEALTH_PROBE_REGION: str = "us-east-1"

    # --- HTTP ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    OUTPUT_PATH: Path = BASE_DIR / "docs" / "spot_data.json"
    LOGS_DIR: Path = Path(
        os.getenv("SPOT_DEALS_LOGS_DIR", str(BASE_DIR / "logs"))
    )

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("SPOT_DEALS_LOG_LEVEL", "WARNING")
    LOG_RETENTION: int = int(
        os.getenv("SPOT_DEALS_LOG_RETENTION", "30")
    )                                   # Run logs kept; 0 keeps all

    @classmethod
    def pricing_filter(cls) -> str:
        """Build the ec2.shop ``filter`` expression."""
        return (
            f"{cls.STORAGE_FILTER},"
            f"cpu>={cls.MIN_VCPUS},"
            f"cpu<={cls.MAX_VCPUS}"
        )
