import enum
import json
import logging
from types import SimpleNamespace
from typing import List, Optional

__all__ = ("DEFAULT_JENKINS_URL", "PLATFORM_FLAVORS", "PLATFORM_REPOS",
           "ConfigurationError", "ValidationError", "TransportError",
           "ProjectKind", "BuildParameter", "BuildRequest")

logger = logging.getLogger("joyent.jenkins.build")

DEFAULT_JENKINS_URL = "https://jenkins.joyent.us"
"""Jenkins server used when none is configured (`str`)
"""

PLATFORM_FLAVORS = ("triton", "smartos", "triton-and-smartos")
"""Recognised values of ``PLATFORM_BUILD_FLAVOR`` (`tuple` of `str`)
"""

PLATFORM_REPOS = (
    "illumos-extra",
    "illumos",
    "local/kbmd",
    "local/kvm-cmd",
    "local/kvm",
    "local/mdata-client",
    "local/ur-agent",
)
"""Repositories configured onto the requested branch for platform builds
(`tuple` of `str`)
"""


class ConfigurationError(ValueError):
    """Missing or inconsistent input; reported with the usage message"""
    pass


class ValidationError(ValueError):
    """An input value outside its recognised set"""
    pass


class TransportError(RuntimeError):
    """Failure talking to the Jenkins server"""
    pass


class ProjectKind(enum.Enum):
    """Kinds of project, each with its own job layout on Jenkins

    ``PLATFORM``, ``HEADNODE`` and ``HEADNODE_DEBUG`` are classic
    parameterised jobs named after the project; everything else is a job in
    the ``joyent-org`` multibranch folder.
    """

    PLATFORM = "platform"
    PLATFORM_DEBUG = "platform-debug"
    HEADNODE = "headnode"
    HEADNODE_DEBUG = "headnode-debug"
    OTHER = None

    @classmethod
    def fromName(cls, project: str) -> "ProjectKind":
        """Classify a project name

        Parameters
        ----------
        project : `str`
            Name of the project.

        Returns
        -------
        kind : `ProjectKind`
            Kind of project; ``OTHER`` for anything not specially handled.
        """
        for kind in cls:
            if kind.value == project:
                return kind
        return cls.OTHER

    @property
    def isClassicJob(self) -> bool:
        """Is the job addressed by project name rather than repo/branch?"""
        return self in (ProjectKind.PLATFORM, ProjectKind.HEADNODE, ProjectKind.HEADNODE_DEBUG)

    @property
    def isPlatform(self) -> bool:
        """Is this a platform (OS) build?"""
        return self in (ProjectKind.PLATFORM, ProjectKind.PLATFORM_DEBUG)

    @property
    def isHeadnode(self) -> bool:
        """Is this a headnode image build?"""
        return self in (ProjectKind.HEADNODE, ProjectKind.HEADNODE_DEBUG)


class BuildParameter(SimpleNamespace):
    """A single named build parameter

    Parameters
    ----------
    name : `str`
        Parameter name, as declared by the Jenkins job.
    value : `str`
        Parameter value.
    """
    def __init__(self, name, value):
        super().__init__(name=name, value=value)

    def toDict(self):
        """Return the representation used in the Jenkins ``json`` form field"""
        return dict(name=self.name, value=self.value)


class BuildRequest:
    """Request to build a project on Jenkins

    Construction validates the inputs; the target URL and the parameter
    payload are then pure functions of them.

    Parameters
    ----------
    project : `str`
        Name of the project (e.g., ``platform``, ``headnode``, ``sdc-vmapi``).
    gitRepo : `str`
        Name of the git repository in the ``joyent-org`` folder.
    branch : `str`, optional
        Branch to build.
    platformFlavor : `str`, optional
        Platform build flavor; only for ``platform`` and ``platform-debug``.
    serverBaseUrl : `str`, optional
        Base URL of the Jenkins server.
    verbose : `bool`, optional
        Show the HTTP conversation?

    Raises
    ------
    ConfigurationError
        If ``project`` or ``gitRepo`` are empty, or ``platformFlavor`` is
        given for a project that is not a platform build.
    ValidationError
        If ``platformFlavor`` is not one of `PLATFORM_FLAVORS`.
    """

    def __init__(self, project: str, gitRepo: str, branch: Optional[str] = None,
                 platformFlavor: Optional[str] = None, serverBaseUrl: str = DEFAULT_JENKINS_URL,
                 verbose: bool = False):
        if not project:
            raise ConfigurationError("No project specified")
        if not gitRepo:
            raise ConfigurationError("No git repository specified (-g)")
        self.project = project
        self.kind = ProjectKind.fromName(project)
        self.gitRepo = gitRepo
        self.branch = branch or None
        self.platformFlavor = platformFlavor or None
        self.serverBaseUrl = (serverBaseUrl or DEFAULT_JENKINS_URL).rstrip("/")
        self.verbose = verbose

        if self.platformFlavor is not None:
            if not self.kind.isPlatform:
                raise ConfigurationError(
                    f"A platform flavor (-F) may only be given for platform or platform-debug, "
                    f"not '{project}'")
            if self.platformFlavor not in PLATFORM_FLAVORS:
                raise ValidationError(
                    f"Unrecognised platform flavor '{self.platformFlavor}'; "
                    f"must be one of: {', '.join(PLATFORM_FLAVORS)}")

    def __repr__(self):
        return (f"{self.__class__.__name__}(project={self.project!r}, gitRepo={self.gitRepo!r}, "
                f"branch={self.branch!r}, platformFlavor={self.platformFlavor!r}, "
                f"serverBaseUrl={self.serverBaseUrl!r})")

    @property
    def url(self) -> str:
        """URL to which the build trigger is posted

        Raises
        ------
        ConfigurationError
            If a multibranch job is targeted without a branch.
        """
        if self.kind.isClassicJob:
            return f"{self.serverBaseUrl}/job/{self.project}/build"
        if self.branch is None:
            raise ConfigurationError(f"A branch (-b) is required to build '{self.project}'")
        return f"{self.serverBaseUrl}/job/joyent-org/job/{self.gitRepo}/job/{self.branch}/build"

    @property
    def parameters(self) -> List[BuildParameter]:
        """Build parameters, in the order the job displays them"""
        params = []
        if self.kind.isClassicJob and self.branch is not None:
            params.append(BuildParameter("BRANCH", self.branch))
        if self.kind.isPlatform:
            if self.branch is not None:
                lines = [f"{repo}: {self.branch}: origin" for repo in PLATFORM_REPOS]
                params.append(BuildParameter("CONFIGURE_PROJECTS", "\n".join(lines)))
            if self.platformFlavor is not None:
                params.append(BuildParameter("PLATFORM_BUILD_FLAVOR", self.platformFlavor))
        if self.kind.isHeadnode and self.branch is not None:
            params.append(BuildParameter("CONFIGURE_BRANCHES", f"bits-branch: {self.branch}"))
        logger.debug("Parameters for %s: %s", self.project, [pp.name for pp in params])
        return params

    @property
    def payload(self) -> str:
        """JSON-encoded parameters, for the ``json`` form field"""
        return json.dumps(dict(parameter=[pp.toDict() for pp in self.parameters]),
                          separators=(",", ":"))
