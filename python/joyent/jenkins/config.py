import logging
import os
from types import SimpleNamespace
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .build import DEFAULT_JENKINS_URL, ConfigurationError

__all__ = ("CONFIG_FILE", "CONFIG_KEYS", "JenkinsConfig", "readConfigFile", "readAuthFile", "parseAuth")

logger = logging.getLogger("joyent.jenkins.config")

CONFIG_FILE = os.path.join(os.path.expanduser("~"), ".jenkins-build.yaml")
"""Configuration file consulted when ``JENKINS_BUILD_CONFIG`` is not set (`str`)
"""

CONFIG_KEYS = ("url", "auth", "authFile")
"""Keys recognised in the configuration file; all take string values
(`tuple` of `str`)
"""


def readConfigFile(filename: Optional[str] = None) -> Dict[str, Any]:
    """Read the YAML configuration file

    Parameters
    ----------
    filename : `str`, optional
        Name of the file. If not given, the default `CONFIG_FILE` is read if
        it exists.

    Returns
    -------
    contents : `dict`
        Contents of the file; empty if there is no file to read.

    Raises
    ------
    ConfigurationError
        If an explicitly named file doesn't exist, the file isn't valid YAML,
        it doesn't hold a mapping, or a recognised key has a non-string value.
    """
    if filename is None:
        filename = CONFIG_FILE
        if not os.path.exists(filename):
            return {}
    elif not os.path.exists(filename):
        raise ConfigurationError(f"Configuration file '{filename}' doesn't exist")

    with open(filename) as fd:
        try:
            content = yaml.load(fd, Loader=yaml.SafeLoader)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Unable to parse configuration file '{filename}': {exc}") from exc
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Configuration file '{filename}' must contain a mapping")
    for key in CONFIG_KEYS:
        if key in content and not isinstance(content[key], str):
            raise ConfigurationError(f"'{key}' in configuration file '{filename}' must be a string: "
                                     f"{content[key]!r}")
    logger.debug("Read configuration from %s: keys %s", filename, sorted(content))
    return content


def readAuthFile(filename: str) -> str:
    """Read a credential from file

    Parameters
    ----------
    filename : `str`
        Name of file whose first line is ``<user>:<token>``.

    Returns
    -------
    auth : `str`
        Credential string.
    """
    filename = os.path.expanduser(filename)
    if not os.path.exists(filename):
        raise ConfigurationError(f"Credential file '{filename}' doesn't exist")
    with open(filename) as fd:
        return fd.readline().strip()


def parseAuth(auth: str) -> Tuple[str, str]:
    """Split a ``<user>:<token>`` credential for HTTP basic auth

    Parameters
    ----------
    auth : `str`
        Credential string.

    Returns
    -------
    user : `str`
        Jenkins user name.
    token : `str`
        Jenkins API token.
    """
    if not auth:
        raise ConfigurationError("No Jenkins credential given (-u or JENKINS_AUTH)")
    user, sep, token = auth.partition(":")
    if not sep or not user:
        raise ConfigurationError("Jenkins credential must be of the form '<user>:<token>'")
    return (user, token)


class JenkinsConfig(SimpleNamespace):
    """Where and as whom to talk to Jenkins

    Parameters
    ----------
    url : `str`
        Base URL of the Jenkins server.
    auth : `str`, optional
        Credential, ``<user>:<token>``.
    """
    def __init__(self, url=DEFAULT_JENKINS_URL, auth=None):
        super().__init__(url=url.rstrip("/"), auth=auth)

    def __repr__(self):
        # Keep the token out of logs
        return f"{self.__class__.__name__}(url={self.url!r}, auth={'***' if self.auth else None})"

    @classmethod
    def create(cls, url: Optional[str] = None, auth: Optional[str] = None,
               environ: Optional[Mapping[str, str]] = None,
               configFile: Optional[str] = None) -> "JenkinsConfig":
        """Assemble the configuration from all sources

        Command-line values take precedence over the environment, which takes
        precedence over the configuration file, which takes precedence over
        the built-in defaults. The configuration file is only read if the
        command line and environment leave something unset.

        Parameters
        ----------
        url : `str`, optional
            Server URL from the command line.
        auth : `str`, optional
            Credential from the command line.
        environ : mapping, optional
            Environment variables; defaults to ``os.environ``.
        configFile : `str`, optional
            Configuration file; defaults to ``JENKINS_BUILD_CONFIG`` from the
            environment, or `CONFIG_FILE`.

        Returns
        -------
        self : `JenkinsConfig`
            Merged configuration.
        """
        if environ is None:
            environ = os.environ
        if configFile is None:
            configFile = environ.get("JENKINS_BUILD_CONFIG") or None
        url = url or environ.get("JENKINS_URL")
        auth = auth or environ.get("JENKINS_AUTH")
        fileConfig = readConfigFile(configFile) if not (url and auth) else {}

        url = url or fileConfig.get("url") or DEFAULT_JENKINS_URL
        auth = auth or fileConfig.get("auth")
        if not auth and fileConfig.get("authFile"):
            auth = readAuthFile(fileConfig["authFile"])
        return cls(url=url, auth=auth or None)

    def getAuth(self) -> Tuple[str, str]:
        """Get authentication tuple for Jenkins

        Raises
        ------
        ConfigurationError
            If no credential is configured, or it is malformed.
        """
        return parseAuth(self.auth)
