"""
Tests for the job and statistics data models.
"""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import sample_job
from kala_cli.models import (
    Job,
    JobStat,
    SchedulerStats,
    format_timestamp,
    is_non_negative_int,
    parse_duration,
    parse_timestamp,
)


class TestJob:
    """Tests for Job encoding and decoding."""

    def test_round_trip_preserves_every_field(self):
        """A fully populated job survives to_dict/from_dict unchanged."""
        job = sample_job()

        assert Job.from_dict(job.to_dict()) == job

    def test_absent_fields_decode_to_zero_values(self):
        job = Job.from_dict({"name": "backup"})

        assert job.id == ""
        assert job.schedule == ""
        assert job.owner == ""
        assert job.retries == 0
        assert job.epsilon == ""
        assert job.disabled is False
        assert job.parent_jobs == []
        assert job.dependent_jobs == []
        assert job.metadata.success_count == 0
        assert job.metadata.last_success is None

    def test_null_lists_decode_to_empty(self):
        job = Job.from_dict({"name": "a", "parent_jobs": None, "dependent_jobs": None})

        assert job.parent_jobs == []
        assert job.dependent_jobs == []

    def test_zero_time_means_never(self):
        job = Job.from_dict({"name": "a", "last_success": "0001-01-01T00:00:00Z"})

        assert job.metadata.last_success is None

    def test_new_job_has_no_id_in_body(self):
        body = Job(name="a", schedule="R/PT1H", command="true").to_dict()

        assert "id" not in body
        assert body["retries"] == 0
        assert "last_success" not in body

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            Job.from_dict(["not", "a", "job"])

    def test_rejects_wrong_field_type(self):
        with pytest.raises(ValueError):
            Job.from_dict({"name": "a", "retries": "three"})


class TestJobStat:

    def test_decode(self):
        stat = JobStat.from_dict({
            "JobId": "job-1",
            "RanAt": "2024-01-02T03:04:05.123456789Z",
            "NumberOfRetries": 2,
            "Success": True,
            "ExecutionDuration": 1500000000,
        })

        assert stat.job_id == "job-1"
        assert stat.ran_at == datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)
        assert stat.number_of_retries == 2
        assert stat.success is True
        assert stat.execution_duration == timedelta(seconds=1.5)

    def test_round_trip(self, job_stats):
        for stat in job_stats:
            assert JobStat.from_dict(stat.to_dict()) == stat

    def test_empty_record(self):
        stat = JobStat.from_dict({})

        assert stat.ran_at is None
        assert stat.success is False
        assert stat.execution_duration == timedelta(0)


class TestSchedulerStats:

    def test_decode(self):
        stats = SchedulerStats.from_dict({
            "ActiveJobs": 2,
            "DisabledJobs": 1,
            "Jobs": 3,
            "ErrorCount": 4,
            "SuccessCount": 10,
            "NextRunAt": "2024-01-02T05:00:00Z",
            "LastAttemptedRun": "0001-01-01T00:00:00Z",
            "CreatedAt": "2024-01-02T04:30:00+02:00",
        })

        assert stats.jobs == 3
        assert stats.active_jobs == 2
        assert stats.disabled_jobs == 1
        assert stats.success_count == 10
        assert stats.error_count == 4
        assert stats.next_run_at == datetime(2024, 1, 2, 5, 0, tzinfo=timezone.utc)
        assert stats.last_attempted_run is None
        assert stats.created_at.utcoffset() == timedelta(hours=2)

    def test_missing_fields(self):
        assert SchedulerStats.from_dict({}) == SchedulerStats()


class TestHelpers:

    @pytest.mark.parametrize("value,expected", [
        (0, True),
        (5, True),
        (-1, False),
        (True, False),
        ("3", False),
        (None, False),
    ])
    def test_is_non_negative_int(self, value, expected):
        assert is_non_negative_int(value) is expected

    def test_parse_timestamp_absent(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_parse_timestamp_short_fraction(self):
        assert parse_timestamp("2024-01-02T03:04:05.5Z").microsecond == 500000

    def test_parse_timestamp_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_format_timestamp_uses_z_for_utc(self):
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        assert format_timestamp(value) == "2024-01-02T03:04:05Z"
        assert format_timestamp(None) == ""

    def test_parse_duration(self):
        assert parse_duration(None) == timedelta(0)
        assert parse_duration(2000) == timedelta(microseconds=2)


class TestStrictDecoding:
    """Wrongly typed flags and counters are rejected, not coerced."""

    @pytest.mark.parametrize("disabled", ["false", "true", 0, 1])
    def test_job_disabled_must_be_boolean(self, disabled):
        with pytest.raises(ValueError):
            Job.from_dict({"name": "a", "disabled": disabled})

    def test_job_stat_success_must_be_boolean(self):
        with pytest.raises(ValueError):
            JobStat.from_dict({"Success": "false"})

    @pytest.mark.parametrize("count", [2.5, float("inf"), float("nan")])
    def test_fractional_counts_are_rejected(self, count):
        with pytest.raises(ValueError):
            SchedulerStats.from_dict({"Jobs": count})

    def test_whole_float_counts_are_accepted(self):
        assert SchedulerStats.from_dict({"Jobs": 3.0}).jobs == 3
