"""Job postings, discovery feeds and interest tracking."""

from .job_discovery_service import JobDiscoveryService, JobFilters
from .job_location import (
    JOB_TYPE_ONSITE,
    JOB_TYPE_PICKUP,
    JOB_TYPES,
    Address,
    OnSiteLocation,
    PickupLocation,
    parse_job_location,
)
from .job_service import JobService

__all__ = [
    "Address",
    "JOB_TYPES",
    "JOB_TYPE_ONSITE",
    "JOB_TYPE_PICKUP",
    "JobDiscoveryService",
    "JobFilters",
    "JobService",
    "OnSiteLocation",
    "PickupLocation",
    "parse_job_location",
]
