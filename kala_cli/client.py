"""
SchedulerClient - thin wrapper around the Kala HTTP API.

One method per remote capability. Each method is a single synchronous
request with no local retry; failures are translated into the error
types in kala_cli.errors.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.utils import quote

from kala_cli.config import ClientConfig
from kala_cli.errors import NotFoundError, ServiceError, TransportError
from kala_cli.models import Job, JobStat, SchedulerStats

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json"}


class SchedulerClient:
    """
    Client for a remote Kala job scheduler.

    Example:
        >>> client = SchedulerClient(ClientConfig(endpoint="http://localhost:8000"))
        >>> for job in client.list_jobs():
        ...     print(job.id, job.name)
    """

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Resolved client configuration (endpoint, timeout)
            session: requests session to use. A new one is created if None.
        """
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(JSON_HEADERS)

    def _url(self, path: str) -> str:
        return self.config.api_url + path

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportError(
                f"Request to {url} timed out after {self.config.timeout}s", cause=e
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", cause=e) from e
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Pull the service's own message out of an error response."""
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        text = (response.text or "").strip()
        if text:
            return text
        return f"{response.status_code} {response.reason or 'error'}"

    def _check(self, response: requests.Response, expected: int) -> None:
        if response.status_code == expected:
            return
        message = self._error_message(response)
        if response.status_code == 404:
            raise NotFoundError(message, status_code=404)
        raise ServiceError(message, status_code=response.status_code)

    @staticmethod
    def _decode(response: requests.Response, key: str) -> Any:
        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Malformed response body from {response.url}: {e}", cause=e) from e
        if not isinstance(payload, dict) or key not in payload:
            raise TransportError(f"Malformed response body from {response.url}: missing '{key}'")
        return payload[key]

    def create_job(self, job: Job) -> str:
        """
        Create a job on the service.

        Args:
            job: Job to create. Name, schedule and command must be set.

        Returns:
            The identifier the service assigned to the job
        """
        response = self._request("POST", "job/", json=job.to_dict())
        self._check(response, 201)
        job_id = self._decode(response, "id")
        if not isinstance(job_id, str):
            raise TransportError(f"Malformed response body from {response.url}: id is not a string")
        logger.info(f"Created job {job.name!r} with id {job_id}")
        return job_id

    def delete_job(self, job_id: str) -> bool:
        """
        Delete a job.

        Returns:
            True if deleted, False if the service refused or did not know the job
        """
        response = self._request("DELETE", f"job/{quote(job_id, safe='')}/")
        if response.status_code == 204:
            logger.info(f"Deleted job {job_id}")
            return True
        logger.info(f"Service did not delete job {job_id}: {self._error_message(response)}")
        return False

    def get_job(self, job_id: str) -> Job:
        response = self._request("GET", f"job/{quote(job_id, safe='')}/")
        self._check(response, 200)
        return self._to_model(response, Job.from_dict, self._decode(response, "job"))

    def list_jobs(self) -> List[Job]:
        """Get every registered job, in the order the service returns them."""
        response = self._request("GET", "job/")
        self._check(response, 200)
        jobs = self._decode(response, "jobs")
        if jobs is None:
            return []
        if isinstance(jobs, dict):
            jobs = list(jobs.values())
        if not isinstance(jobs, list):
            raise TransportError(f"Malformed response body from {response.url}: jobs is not a collection")
        return [self._to_model(response, Job.from_dict, item) for item in jobs]

    def get_job_stats(self, job_id: str) -> List[JobStat]:
        """Get the execution history of a job."""
        response = self._request("GET", f"job/stats/{quote(job_id, safe='')}/")
        self._check(response, 200)
        stats = self._decode(response, "job_stats")
        if stats is None:
            return []
        if not isinstance(stats, list):
            raise TransportError(f"Malformed response body from {response.url}: job_stats is not a list")
        return [self._to_model(response, JobStat.from_dict, item) for item in stats]

    def get_scheduler_stats(self) -> SchedulerStats:
        response = self._request("GET", "stats/")
        self._check(response, 200)
        return self._to_model(response, SchedulerStats.from_dict, self._decode(response, "Stats"))

    @staticmethod
    def _to_model(response: requests.Response, factory, data: Dict[str, Any]):
        try:
            return factory(data)
        except ValueError as e:
            raise TransportError(f"Malformed response body from {response.url}: {e}", cause=e) from e
