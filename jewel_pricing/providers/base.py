from abc import ABC, abstractmethod

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_TIMEOUT_SECONDS = 10
STATUS_RETRIES = 1


class PriceFeedError(RuntimeError):
    """Raised when a provider cannot return a usable market value."""


class MarketRateProvider(ABC):
    provider_name: str

    @abstractmethod
    def fetch_latest(self) -> float:
        """Returns the latest value from the upstream source."""
        raise NotImplementedError


def build_retry_session(status_retries: int = STATUS_RETRIES) -> requests.Session:
    """
    Session that retries throttled or failing responses but never a timeout,
    so one request is bounded by the timeout passed to it.
    """
    session = requests.Session()
    retry = Retry(
        total=status_retries,
        connect=0,
        read=0,
        status=status_retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session
