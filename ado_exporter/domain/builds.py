"""
Build domain models - Pipelines, builds and timeline records
"""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass
class BuildDefinition:
    """
    Represents a build (pipeline) definition.

    Attributes:
        id: Definition ID
        name: Definition name
        path: Folder path of the definition
        build_name_format: Build number format string
        url: Web URL of the definition
    """

    id: int
    name: str
    path: str = ""
    build_name_format: str = ""
    url: str = ""


@dataclass
class Build:
    """
    Represents a single build run.

    Unset timestamps are None; Azure DevOps reports not-yet-reached dates
    either as missing fields or as 0001-01-01, both are normalized away by the
    transformer or skipped by the metric accumulator.

    Attributes:
        id: Build ID
        build_number: Human build number (e.g. "20260210.1")
        definition_id: ID of the build definition
        definition_name: Name of the build definition
        project_id: Project GUID
        agent_pool_id: Agent pool the build was queued on
        requested_by: Display name of the requester
        source_branch: Source branch ref
        source_version: Source commit
        status: inProgress, completed, cancelling, postponed, notStarted
        reason: manual, individualCI, schedule, pullRequest, ...
        result: succeeded, partiallySucceeded, failed, canceled (empty while running)
        queue_time: When the build was queued
        start_time: When the build started
        finish_time: When the build finished
        url: Web URL of the build

    Example:
        if build.job_duration is not None:
            print(f"Build {build.build_number} ran {build.job_duration.total_seconds()}s")
    """

    id: int
    build_number: str
    definition_id: int
    definition_name: str = ""
    project_id: str = ""
    agent_pool_id: int = 0
    requested_by: str = ""
    source_branch: str = ""
    source_version: str = ""
    status: str = ""
    reason: str = ""
    result: str = ""
    queue_time: datetime | None = None
    start_time: datetime | None = None
    finish_time: datetime | None = None
    url: str = ""

    @property
    def succeeded(self) -> bool:
        return self.result == "succeeded"

    @property
    def job_duration(self) -> timedelta | None:
        """
        Time between start and finish.

        Returns:
            timedelta, or None while the build has not both started and finished
        """
        if self.start_time is None or self.finish_time is None:
            return None
        if self.finish_time.year <= 1 or self.start_time.year <= 1:
            return None
        return self.finish_time - self.start_time

    @property
    def queue_duration(self) -> timedelta | None:
        """Time between queueing and start (None if either is unknown)."""
        if self.queue_time is None or self.start_time is None:
            return None
        if self.queue_time.year <= 1 or self.start_time.year <= 1:
            return None
        return self.start_time - self.queue_time


@dataclass
class TimelineRecord:
    """
    One record of a build timeline (Stage, Phase, Job or Task).

    Attributes:
        record_type: Stage, Phase, Job, Task, Checkpoint, ...
        name: Display name
        id: Record GUID
        parent_id: GUID of the parent record
        error_count: Number of errors reported by the record
        warning_count: Number of warnings reported by the record
        result: succeeded, failed, skipped, ...
        worker_name: Agent that executed the record
        identifier: Stable identifier within the pipeline
        start_time: Start of the record
        finish_time: End of the record
    """

    record_type: str
    name: str
    id: str
    parent_id: str = ""
    error_count: float = 0
    warning_count: float = 0
    result: str = ""
    worker_name: str = ""
    identifier: str = ""
    start_time: datetime | None = None
    finish_time: datetime | None = None

    @property
    def duration(self) -> timedelta | None:
        if self.start_time is None or self.finish_time is None:
            return None
        if self.start_time.year <= 1 or self.finish_time.year <= 1:
            return None
        return self.finish_time - self.start_time
