"""
Base API Client

Provides common functionality for REST clients used during name enrichment:
- Retry with exponential backoff on 429/5xx (urllib3 Retry)
- Circuit breaker pattern
- Error handling (failures are logged and returned as None)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from src.drug_relevance.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class BaseAPIClient(ABC):
    """
    Base class for blocking REST clients.

    Calls are synchronous; async callers run them with asyncio.to_thread.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 8.0,
        max_retries: int = 2,
        name: Optional[str] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        enable_circuit_breaker: bool = True,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: Base URL for API endpoints
            timeout: Request timeout in seconds
            max_retries: Transport-level retries for 429/5xx responses
            name: Client name for logging
            circuit_breaker: Pre-built breaker (tests inject one with a fake clock)
            enable_circuit_breaker: Create a default breaker when none is given
            session: Pre-built requests session
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.name = name or self.__class__.__name__

        if circuit_breaker is None and enable_circuit_breaker:
            circuit_breaker = CircuitBreaker(name=self.name)
        self.circuit_breaker = circuit_breaker

        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry configuration."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"Accept": "application/json"})

        return session

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request guarded by the circuit breaker.

        Args:
            method: HTTP method
            endpoint: API endpoint (appended to base_url)
            params: URL parameters
            timeout: Override default timeout

        Returns:
            Response JSON, {} for an empty body or a 404, or None on failure
        """
        if self.circuit_breaker and not self.circuit_breaker.allow_request():
            logger.warning(f"[{self.name}] Circuit breaker is OPEN - skipping request")
            return None

        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                timeout=timeout or self.timeout,
            )
            response.raise_for_status()
            payload = response.json() if response.content else {}

        except requests.exceptions.Timeout:
            logger.error(f"[{self.name}] Request timeout: {url}")
            self._record_failure()
            return None
        except requests.exceptions.HTTPError as e:
            # 404 is a definitive "no such resource": empty payload, breaker untouched
            if e.response is not None and e.response.status_code == 404:
                logger.info(f"[{self.name}] Not found: {url}")
                return {}
            logger.error(f"[{self.name}] HTTP error: {e}")
            self._record_failure()
            return None
        except requests.exceptions.RequestException as e:
            logger.error(f"[{self.name}] Request failed: {e}")
            self._record_failure()
            return None
        except ValueError as e:
            logger.error(f"[{self.name}] Invalid JSON from {url}: {e}")
            self._record_failure()
            return None

        if self.circuit_breaker:
            self.circuit_breaker.record_success()
        return payload

    def _record_failure(self):
        if self.circuit_breaker:
            self.circuit_breaker.record_failure()

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Optional[Dict[str, Any]]:
        """Make GET request."""
        return self._make_request("GET", endpoint, params=params, **kwargs)

    def get_status(self) -> Dict[str, Any]:
        """Get client status including circuit breaker state."""
        status: Dict[str, Any] = {
            "client": self.name,
            "base_url": self.base_url,
        }
        if self.circuit_breaker:
            status["circuit_breaker"] = {
                "state": self.circuit_breaker.state.value,
                "details": repr(self.circuit_breaker),
            }
        return status

    def close(self):
        self.session.close()

    @abstractmethod
    def health_check(self) -> bool:
        """Check if API is accessible."""
        pass
