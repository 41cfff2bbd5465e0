"""
Human-readable rendering of jobs, job statistics and scheduler statistics.

Output is line-oriented so it can be piped into other tools. Errors go to
the error stream, prefixed with the qualified command name.
"""

import sys
from datetime import timedelta
from typing import Iterable, Optional, TextIO

from kala_cli.models import Job, JobStat, SchedulerStats, format_timestamp

SEPARATOR = "---"


def format_bool(value: bool, false_word: str, true_word: str) -> str:
    return true_word if value else false_word


def format_duration(value: timedelta) -> str:
    return str(value)


class Presenter:
    """Writes command results to stdout and errors to stderr."""

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None,
                 prog: str = "kala-cli"):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.prog = prog

    def _line(self, text: str = "") -> None:
        print(text, file=self.stdout)

    def job(self, job: Job) -> None:
        self._line(f"Job id: {job.id}")
        self._line(f"Name: {job.name}")
        self._line(f"Disabled: {format_bool(job.disabled, 'no', 'yes')}")
        self._line(f"Schedule: {job.schedule}")
        self._line(f"Owner: {job.owner}")
        self._line(f"Command: {job.command}")
        self._line(f"Retries: {job.retries}")
        self._line(f"Epsilon: {job.epsilon}")
        self._line(f"Parent jobs: {', '.join(job.parent_jobs)}")
        self._line(f"Dependent jobs: {', '.join(job.dependent_jobs)}")
        self._line(f"Success count: {job.metadata.success_count}")
        self._line(f"Error count: {job.metadata.error_count}")
        self._line(f"Last success: {format_timestamp(job.metadata.last_success)}")
        self._line(f"Last error: {format_timestamp(job.metadata.last_error)}")
        self._line(f"Last attempted run: {format_timestamp(job.metadata.last_attempted_run)}")

    def job_ids(self, jobs: Iterable[Job]) -> None:
        for job in jobs:
            self._line(job.id)

    def job_stats(self, stats: Iterable[JobStat]) -> None:
        """Render each run as a block; the index is display-only."""
        for n, stat in enumerate(stats):
            self._line(SEPARATOR)
            self._line(f"Repetition: {n}")
            self._line(f"Last run at: {format_timestamp(stat.ran_at)}")
            self._line(f"Number of retries: {stat.number_of_retries}")
            self._line(f"Status: {format_bool(stat.success, 'failed', 'success')}")
            self._line(f"Execution duration: {format_duration(stat.execution_duration)}")

    def scheduler_stats(self, stats: SchedulerStats) -> None:
        self._line(f"Stats retrieved at: {format_timestamp(stats.created_at)}")
        self._line(f"Total jobs: {stats.jobs}")
        self._line(f"Active jobs: {stats.active_jobs}")
        self._line(f"Disabled jobs: {stats.disabled_jobs}")
        self._line(f"Success count: {stats.success_count}")
        self._line(f"Error count: {stats.error_count}")
        self._line(f"Next run: {format_timestamp(stats.next_run_at)}")
        self._line(f"Last attempted run: {format_timestamp(stats.last_attempted_run)}")

    def delete_outcome(self, ok: bool) -> None:
        self._line(format_bool(ok, "failure", "success"))

    def created(self, job_id: str) -> None:
        self._line(job_id)

    def error(self, command: Optional[str], message: str) -> None:
        name = f"{self.prog} {command}" if command else self.prog
        print(f"{name}: {message}", file=self.stderr)
