"""Components to implement the program ``jenkins-build``.
"""
import argparse
import enum
import logging
import os
import sys

from .build import BuildRequest, ConfigurationError, ValidationError, TransportError, PLATFORM_FLAVORS
from .config import JenkinsConfig
from .jenkins import triggerJenkins

__all__ = ("LogLevel", "makeParser", "setupLogging", "showHttp", "run", "main")

logger = logging.getLogger("joyent.jenkins.trigger")


class LogLevel(enum.IntEnum):
    """Possible arguments of ``--loglevel``."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR


def makeParser():
    """Construct the command-line parser

    Returns
    -------
    parser : `argparse.ArgumentParser`
        Parser for the ``jenkins-build`` command line.
    """
    parser = argparse.ArgumentParser(
        prog="jenkins-build",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Trigger a build on Jenkins",
        epilog=f"""
environment:
  JENKINS_URL           Jenkins server (overridden by -H)
  JENKINS_AUTH          credential, <user>:<token> (overridden by -u)
  JENKINS_BUILD_CONFIG  YAML file providing url/auth/authFile
  TRACE                 if set, log the steps taken

platform flavors: {", ".join(PLATFORM_FLAVORS)}
""")
    parser.add_argument("project", help="Project to build (e.g., platform, headnode, sdc-vmapi)")
    parser.add_argument("-H", dest="url", metavar="url", help="Jenkins server URL")
    parser.add_argument("-b", dest="branch", metavar="BRANCH", help="Branch to build")
    parser.add_argument("-F", dest="platformFlavor", metavar="PLAT_FLAVOR",
                        help="Platform build flavor (platform and platform-debug only)")
    parser.add_argument("-u", dest="auth", metavar="auth", help="Jenkins credential, <user>:<token>")
    parser.add_argument("-g", dest="gitRepo", metavar="GITREPO", required=True, help="Git repository name")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Show the HTTP conversation")
    parser.add_argument("-n", "--dry-run", dest="dryRun", action="store_true",
                        help="Print what would be triggered, but don't trigger it")
    parser.add_argument("-L", "--loglevel", choices=list(LogLevel.__members__), default="WARN",
                        help="How chatty should I be?")
    return parser


def setupLogging(loglevel="WARN", trace=False):
    """Configure logging

    Parameters
    ----------
    loglevel : `str`, optional
        Name of a `LogLevel` for our own messages.
    trace : `bool`, optional
        Log the steps taken (overrides ``loglevel``)?
    """
    logging.basicConfig(format="%(name)s %(levelname)s: %(message)s")
    level = logging.DEBUG if trace else LogLevel.__members__[loglevel]
    logging.getLogger("joyent.jenkins").setLevel(level)


def showHttp():
    """Log the requests made and the responses received"""
    for name in ("requests.packages.urllib3", "urllib3"):
        requests_log = logging.getLogger(name)
        requests_log.setLevel(logging.DEBUG)
        requests_log.propagate = True


def run(request, config, dryRun=False):
    """Trigger the build

    Parameters
    ----------
    request : `joyent.jenkins.build.BuildRequest`
        What to build.
    config : `joyent.jenkins.config.JenkinsConfig`
        Server and credential.
    dryRun : `bool`, optional
        Only print what would be triggered?

    Returns
    -------
    response : `requests.Response` or `None`
        Response from the server, or ``None`` for a dry run.
    """
    if dryRun:
        print(f"Disabled triggering {request.url} with json={request.payload}")
        return None
    if request.verbose:
        showHttp()
    response = triggerJenkins(config, request)
    print(f"Triggered {request.project} ({response.status_code}).", response.text)
    return response


def main(argv=None, environ=None):
    """Parse command-line and run

    Parameters
    ----------
    argv : `list` of `str`, optional
        Command-line arguments; defaults to ``sys.argv[1:]``.
    environ : mapping, optional
        Environment variables; defaults to ``os.environ``.

    Returns
    -------
    status : `int`
        Exit status: 0 for success, 1 for an unrecognised platform flavor,
        3 for a failure talking to Jenkins. Usage errors exit with status 2.
    """
    if environ is None:
        environ = os.environ
    parser = makeParser()
    args = parser.parse_args(argv)
    setupLogging(args.loglevel, trace=bool(environ.get("TRACE")))

    try:
        config = JenkinsConfig.create(url=args.url, auth=args.auth, environ=environ)
        logger.debug("Configuration: %r", config)
        request = BuildRequest(args.project, args.gitRepo, branch=args.branch,
                               platformFlavor=args.platformFlavor, serverBaseUrl=config.url,
                               verbose=args.verbose)
        logger.debug("Request: %r", request)
        if not args.dryRun:
            config.getAuth()
        run(request, config, dryRun=args.dryRun)
    except ConfigurationError as exc:
        parser.error(str(exc))
    except ValidationError as exc:
        print(f"{parser.prog}: {exc}", file=sys.stderr)
        return 1
    except TransportError as exc:
        print(f"{parser.prog}: {exc}", file=sys.stderr)
        return 3
    return 0
