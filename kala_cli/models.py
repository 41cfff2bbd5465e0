"""
Data models for jobs and statistics exchanged with the Kala API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

# The service reports "never happened" as Go's zero time
ZERO_TIME_PREFIX = "0001-01-01T00:00:00"


def is_non_negative_int(value: Any) -> bool:
    """True for ints >= 0 (bools are rejected)."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; absent or zero time gives None."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected a timestamp string, got {value!r}")
    if value.startswith(ZERO_TIME_PREFIX):
        return None

    text = value
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"

    # fromisoformat accepts at most microseconds
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        for ch in rest:
            if not ch.isdigit():
                break
            digits += ch
        text = head + "." + digits[:6].ljust(6, "0") + rest[len(digits):]

    return datetime.fromisoformat(text)


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp as RFC 3339, with 'Z' for UTC. None gives ''."""
    if value is None:
        return ""
    text = value.isoformat()
    if value.utcoffset() == timedelta(0):
        text = text[:-len("+00:00")] + "Z"
    return text


def parse_duration(value: Any) -> timedelta:
    """Durations arrive as integer nanoseconds."""
    if value is None or value == "":
        return timedelta(0)
    return timedelta(microseconds=_as_int(value, "duration") / 1000)


def duration_to_nanoseconds(value: timedelta) -> int:
    return (value // timedelta(microseconds=1)) * 1000


def _as_int(value: Any, name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected a number for {name}, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Expected a whole number for {name}, got {value!r}")
    return int(value)


def _as_bool(value: Any, name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"Expected a boolean for {name}, got {value!r}")
    return value


def _as_str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"Expected a string for {name}, got {value!r}")
    return value


def _as_str_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"Expected a list for {name}, got {value!r}")
    return [_as_str(item, name) for item in value]


def _require_mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object for {what}, got {type(data).__name__}")
    return data


@dataclass
class JobMetadata:
    """Aggregate execution history of a job"""
    success_count: int = 0
    error_count: int = 0
    last_success: Optional[datetime] = None
    last_error: Optional[datetime] = None
    last_attempted_run: Optional[datetime] = None


@dataclass
class Job:
    """A scheduled unit of work"""
    name: str
    schedule: str
    command: str
    id: str = ""
    owner: str = ""
    retries: int = 0
    epsilon: str = ""  # ISO 8601 duration, e.g. PT5M
    disabled: bool = False
    parent_jobs: List[str] = field(default_factory=list)  # read-only, service maintained
    dependent_jobs: List[str] = field(default_factory=list)  # read-only, service maintained
    metadata: JobMetadata = field(default_factory=JobMetadata)

    @classmethod
    def from_dict(cls, data: Any) -> 'Job':
        """Create from the service's JSON representation"""
        data = _require_mapping(data, "job")
        return cls(
            id=_as_str(data.get("id"), "id"),
            name=_as_str(data.get("name"), "name"),
            schedule=_as_str(data.get("schedule"), "schedule"),
            command=_as_str(data.get("command"), "command"),
            owner=_as_str(data.get("owner"), "owner"),
            retries=_as_int(data.get("retries"), "retries"),
            epsilon=_as_str(data.get("epsilon"), "epsilon"),
            disabled=_as_bool(data.get("disabled"), "disabled"),
            parent_jobs=_as_str_list(data.get("parent_jobs"), "parent_jobs"),
            dependent_jobs=_as_str_list(data.get("dependent_jobs"), "dependent_jobs"),
            metadata=JobMetadata(
                success_count=_as_int(data.get("success_count"), "success_count"),
                error_count=_as_int(data.get("error_count"), "error_count"),
                last_success=parse_timestamp(data.get("last_success")),
                last_error=parse_timestamp(data.get("last_error")),
                last_attempted_run=parse_timestamp(data.get("last_attempted_run")),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the service's JSON representation"""
        data: Dict[str, Any] = {
            "name": self.name,
            "schedule": self.schedule,
            "command": self.command,
            "owner": self.owner,
            "retries": self.retries,
            "epsilon": self.epsilon,
            "disabled": self.disabled,
            "parent_jobs": list(self.parent_jobs),
            "dependent_jobs": list(self.dependent_jobs),
            "success_count": self.metadata.success_count,
            "error_count": self.metadata.error_count,
        }
        if self.id:
            data["id"] = self.id
        for key in ("last_success", "last_error", "last_attempted_run"):
            value = getattr(self.metadata, key)
            if value is not None:
                data[key] = format_timestamp(value)
        return data


@dataclass(frozen=True)
class JobStat:
    """One historical execution of a job"""
    job_id: str = ""
    ran_at: Optional[datetime] = None
    number_of_retries: int = 0
    success: bool = False
    execution_duration: timedelta = timedelta(0)

    @classmethod
    def from_dict(cls, data: Any) -> 'JobStat':
        data = _require_mapping(data, "job stat")
        return cls(
            job_id=_as_str(data.get("JobId"), "JobId"),
            ran_at=parse_timestamp(data.get("RanAt")),
            number_of_retries=_as_int(data.get("NumberOfRetries"), "NumberOfRetries"),
            success=_as_bool(data.get("Success"), "Success"),
            execution_duration=parse_duration(data.get("ExecutionDuration")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "JobId": self.job_id,
            "RanAt": format_timestamp(self.ran_at),
            "NumberOfRetries": self.number_of_retries,
            "Success": self.success,
            "ExecutionDuration": duration_to_nanoseconds(self.execution_duration),
        }


@dataclass
class SchedulerStats:
    """Point-in-time snapshot of the whole scheduler"""
    created_at: Optional[datetime] = None
    jobs: int = 0
    active_jobs: int = 0
    disabled_jobs: int = 0
    success_count: int = 0
    error_count: int = 0
    next_run_at: Optional[datetime] = None
    last_attempted_run: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'SchedulerStats':
        data = _require_mapping(data, "scheduler stats")
        return cls(
            created_at=parse_timestamp(data.get("CreatedAt")),
            jobs=_as_int(data.get("Jobs"), "Jobs"),
            active_jobs=_as_int(data.get("ActiveJobs"), "ActiveJobs"),
            disabled_jobs=_as_int(data.get("DisabledJobs"), "DisabledJobs"),
            success_count=_as_int(data.get("SuccessCount"), "SuccessCount"),
            error_count=_as_int(data.get("ErrorCount"), "ErrorCount"),
            next_run_at=parse_timestamp(data.get("NextRunAt")),
            last_attempted_run=parse_timestamp(data.get("LastAttemptedRun")),
        )
