"""
Project domain models - Projects and their Git repositories

The project list is the unit of fan-out for every project-scoped collector.
Repositories are attached to each project at discovery time so that the
repository and pull request collectors do not need to list them again.
"""

from dataclasses import dataclass, field


@dataclass
class Repository:
    """
    Represents a Git repository inside an Azure DevOps project.

    Attributes:
        id: Repository GUID
        name: Repository name
        url: REST URL of the repository
        state: Repository state (e.g. "enabled")
        size: Repository size in bytes (0 when not reported)
    """

    id: str
    name: str
    url: str = ""
    state: str = ""
    size: int = 0


@dataclass
class Project:
    """
    Represents an Azure DevOps project.

    Attributes:
        id: Project GUID, used for whitelist/blacklist filtering
        name: Project name
        description: Free text description
        url: REST URL of the project
        state: Project state (wellFormed, createPending, ...)
        visibility: private or public
        repositories: Repositories discovered for this project

    Example:
        project = Project(id="8f3b...", name="Platform")
        for repository in project.repositories:
            print(repository.name)
    """

    id: str
    name: str
    description: str = ""
    url: str = ""
    state: str = ""
    visibility: str = ""
    repositories: list[Repository] = field(default_factory=list)
