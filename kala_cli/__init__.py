"""
Kala CLI

Command-line client for a remote Kala job scheduler.

Main Components:
- SchedulerClient: One method per remote API capability
- Presenter: Human-readable rendering of jobs and statistics
- Configuration: Endpoint, timeout and default owner resolution
"""

__version__ = "0.1.0"

# Configuration
from .config import ClientConfig

# Errors
from .errors import KalaCLIError, UsageError, TransportError, ServiceError, NotFoundError

# Models
from .models import Job, JobMetadata, JobStat, SchedulerStats

# Client and rendering
from .client import SchedulerClient
from .formatting import Presenter

__all__ = [
    # Configuration
    "ClientConfig",
    # Errors
    "KalaCLIError",
    "UsageError",
    "TransportError",
    "ServiceError",
    "NotFoundError",
    # Models
    "Job",
    "JobMetadata",
    "JobStat",
    "SchedulerStats",
    # Client
    "SchedulerClient",
    "Presenter",
]
