"""
HTTP client for a remote asynchronous job queue

Image-to-video services accept a job, queue it, and report status until
the result is ready:

    POST {base_url}/{model_id}          -> {"request_id", "status_url", "response_url"}
    GET  {status_url}?logs=1            -> {"status", "queue_position", "logs"}
    GET  {response_url}                 -> result payload

Calls are blocking (requests); async callers run them in a worker thread.
"""
import os
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from i2v_batch.errors import QueueAPIError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://queue.fal.run"
API_KEY_ENV = "I2V_API_KEY"
BASE_URL_ENV = "I2V_QUEUE_URL"

# Global session for connection pooling
_http_session: Optional[requests.Session] = None


def get_http_session() -> requests.Session:
    """
    Get or create global HTTP session with connection pooling

    Batch windows poll several jobs at once, so connections are reused
    across status checks.
    """
    global _http_session

    if _http_session is None:
        _http_session = requests.Session()

        adapter = requests.adapters.HTTPAdapter(
            pool_connections=10,
            pool_maxsize=20,
            max_retries=0  # Retries are the batch scheduler's job
        )
        _http_session.mount('http://', adapter)
        _http_session.mount('https://', adapter)

        logger.debug("HTTP session with connection pooling initialized")

    return _http_session


@dataclass(frozen=True)
class QueueHandle:
    """Reference to a submitted job"""

    request_id: str
    status_url: str
    response_url: str


class QueueClient:
    """Blocking client for a remote job queue"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client

        Args:
            base_url: Queue endpoint (default: $I2V_QUEUE_URL or DEFAULT_BASE_URL)
            api_key: API key (default: $I2V_API_KEY)
            timeout: Per-request timeout in seconds
            session: requests session (default: shared pooled session)
        """
        self.base_url = (base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL).rstrip('/')
        self.api_key = api_key or os.environ.get(API_KEY_ENV)
        self.timeout = timeout
        self.session = session or get_http_session()

        if not self.api_key:
            logger.warning(f"No API key configured (set {API_KEY_ENV}); requests will be unauthenticated")

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json', 'Accept': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Key {self.api_key}"
        return headers

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """
        Perform a request and decode the JSON body

        Raises:
            QueueAPIError: On HTTP errors, network errors or a non-JSON body
        """
        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            body = ""
            if e.response is not None:
                body = (e.response.text or "")[:500]
            logger.debug(f"Response body: {body}")
            raise QueueAPIError(
                f"Queue API error {status_code} for {method} {url}: {body or e}",
                status_code=status_code,
            ) from e
        except requests.exceptions.RequestException as e:
            raise QueueAPIError(f"Network error for {method} {url}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise QueueAPIError(
                f"Invalid JSON from {method} {url}",
                status_code=response.status_code,
            ) from e

    def submit(self, model_id: str, payload: Dict[str, Any]) -> QueueHandle:
        """
        Submit a job to the queue

        Args:
            model_id: Model path on the queue (e.g. "fal-ai/veo3/image-to-video")
            payload: JSON input for the model

        Returns:
            QueueHandle for status and result calls
        """
        data = self._request('POST', f"{self.base_url}/{model_id}", json=payload)

        request_id = data.get('request_id')
        if not request_id:
            raise QueueAPIError(f"Submit response for {model_id} has no request_id")

        request_url = f"{self.base_url}/{model_id}/requests/{request_id}"
        handle = QueueHandle(
            request_id=request_id,
            status_url=data.get('status_url') or f"{request_url}/status",
            response_url=data.get('response_url') or request_url,
        )
        logger.info(f"Submitted job {request_id} to {model_id}")
        return handle

    def status(self, handle: QueueHandle, logs: bool = True) -> Dict[str, Any]:
        """Fetch the job's current status in wire form"""
        params = {'logs': 1} if logs else None
        return self._request('GET', handle.status_url, params=params)

    def result(self, handle: QueueHandle) -> Dict[str, Any]:
        """Fetch the finished job's result payload"""
        return self._request('GET', handle.response_url)
