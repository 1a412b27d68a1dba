"""
Job models
"""
from .job import Job, JobResult, PresetInfo, QualityPreset, SimpleOptions

__all__ = [
    "Job",
    "JobResult",
    "PresetInfo",
    "QualityPreset",
    "SimpleOptions",
]
