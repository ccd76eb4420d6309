import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    storage_account_name: str
    storage_account_key: str
    container: str
    collection: str
    geoapify_api_key: str
    geolocation_endpoint: str
    geolocation_timeout: float
    log_file: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        storage_account_name=os.getenv("AZURE_STORAGE_ACCOUNT_NAME", "").strip(),
        storage_account_key=os.getenv("AZURE_STORAGE_ACCOUNT_KEY", ""),
        container=os.getenv("AZURE_CONTAINER", "analytics"),
        collection=os.getenv("ANALYTICS_COLLECTION", "events"),
        geoapify_api_key=os.getenv("GEOAPIFY_API_KEY", ""),
        geolocation_endpoint=os.getenv(
            "GEOLOCATION_ENDPOINT", "https://api.geoapify.com/v1/ipinfo"
        ),
        geolocation_timeout=float(os.getenv("GEOLOCATION_TIMEOUT", "3.0")),
        log_file=os.getenv("WEBSTATS_LOG_FILE", "webstats.log"),
    )
