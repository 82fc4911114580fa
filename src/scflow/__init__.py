from .config import RunConfig, load_config
from .dag import DependencyGraph
from .model import Job, JobKind, JobState
from .pipeline import build_plan
from .scheduler import JobScheduler

__all__ = [
    "RunConfig",
    "load_config",
    "DependencyGraph",
    "Job",
    "JobKind",
    "JobState",
    "build_plan",
    "JobScheduler",
]
