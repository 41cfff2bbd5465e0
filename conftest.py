"""
Pytest configuration and shared fixtures.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
import requests

from kala_cli.errors import KalaCLIError
from kala_cli.models import Job, JobMetadata, JobStat, SchedulerStats


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Keep tests independent of the developer's environment and config file.

    KALA_CLI_CONFIG points at a file that does not exist, so no real
    ~/.kala_cli/config.json is ever read.
    """
    for name in ("KALA_ENDPOINT", "KALA_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KALA_CLI_CONFIG", str(tmp_path / "missing-config.json"))
    monkeypatch.setenv("USER", "tester")
    monkeypatch.chdir(tmp_path)


def make_response(status: int, body=None, text: Optional[str] = None,
                  url: str = "http://kala.test/api/v1/", reason: str = "") -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.reason = reason
    response.encoding = "utf-8"
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = (text or "").encode("utf-8")
    return response


def sample_job(**overrides) -> Job:
    values = dict(
        id="job-1",
        name="backup",
        schedule="R/2024-01-02T03:00:00Z/PT1H",
        command="tar czf /bk /data",
        owner="ops@example.com",
        retries=2,
        epsilon="PT5M",
        disabled=False,
        parent_jobs=["parent-a", "parent-b"],
        dependent_jobs=["child-a"],
        metadata=JobMetadata(
            success_count=7,
            error_count=1,
            last_success=datetime(2024, 1, 2, 3, 0, 0, tzinfo=timezone.utc),
            last_error=datetime(2024, 1, 1, 3, 0, 0, 250000, tzinfo=timezone.utc),
            last_attempted_run=datetime(2024, 1, 2, 3, 0, 0, tzinfo=timezone.utc),
        ),
    )
    values.update(overrides)
    return Job(**values)


class FakeClient:
    """
    Stand-in for SchedulerClient that records every call.

    Results are configured via attributes; set an attribute to an
    exception instance to make the corresponding call raise it.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.created_id = "abc123"
        self.delete_result = True
        self.job = sample_job()
        self.jobs: List[Job] = []
        self.job_stats: List[JobStat] = []
        self.scheduler_stats = SchedulerStats(jobs=3, active_jobs=2, disabled_jobs=1)

    def _result(self, value):
        if isinstance(value, KalaCLIError):
            raise value
        return value

    def calls_to(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def create_job(self, job):
        self.calls.append(("create_job", job))
        return self._result(self.created_id)

    def delete_job(self, job_id):
        self.calls.append(("delete_job", job_id))
        return self._result(self.delete_result)

    def get_job(self, job_id):
        self.calls.append(("get_job", job_id))
        return self._result(self.job)

    def list_jobs(self):
        self.calls.append(("list_jobs",))
        return self._result(self.jobs)

    def get_job_stats(self, job_id):
        self.calls.append(("get_job_stats", job_id))
        return self._result(self.job_stats)

    def get_scheduler_stats(self):
        self.calls.append(("get_scheduler_stats",))
        return self._result(self.scheduler_stats)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def job_stats():
    return [
        JobStat(
            job_id="job-1",
            ran_at=datetime(2024, 1, 2, 3, 0, 0, tzinfo=timezone.utc),
            number_of_retries=0,
            success=True,
            execution_duration=timedelta(seconds=1, milliseconds=500),
        ),
        JobStat(
            job_id="job-1",
            ran_at=datetime(2024, 1, 2, 4, 0, 0, tzinfo=timezone.utc),
            number_of_retries=2,
            success=False,
            execution_duration=timedelta(seconds=30),
        ),
    ]
