import logging

import requests

from .build import TransportError

__all__ = ("CRUMB_PATH", "getCrumb", "triggerJenkins")

logger = logging.getLogger("joyent.jenkins.jenkins")

CRUMB_PATH = '/crumbIssuer/api/xml?xpath=concat(//crumbRequestField,":",//crumb)'
"""Path of the crumb issuer, returning ``<header>:<crumb>`` as plain text (`str`)
"""

TIMEOUT = 60
"""Connect/read timeout for each request, in seconds (`int`)
"""


def _check(response, what):
    """Raise `TransportError` for an unsuccessful response"""
    if response.status_code >= 400:
        raise TransportError(f"Failed to {what} ({response.status_code}): {response.text}")
    return response


def getCrumb(session, url, auth):
    """Get a CSRF crumb from Jenkins

    Parameters
    ----------
    session : `requests.Session`
        Session for the conversation; Jenkins ties the crumb to its cookies.
    url : `str`
        Base URL of the Jenkins server.
    auth : `tuple` (`str`, `str`)
        Authentication tuple for Jenkins.

    Returns
    -------
    headers : `dict` [`str`, `str`]
        Header to send with state-changing requests.
    """
    try:
        response = session.get(url=url + CRUMB_PATH, auth=auth, timeout=TIMEOUT)
    except requests.RequestException as exc:
        raise TransportError(f"Failed to get crumb from {url}: {exc}") from exc
    _check(response, "get crumb")
    field, sep, crumb = response.text.strip().partition(":")
    if not sep or not field:
        raise TransportError(f"Unexpected crumb from {url}: {response.text!r}")
    logger.debug("Got crumb header %s", field)
    return {field: crumb}


def triggerJenkins(config, request):
    """Trigger a Jenkins build

    Parameters
    ----------
    config : `joyent.jenkins.config.JenkinsConfig`
        Server and credential.
    request : `joyent.jenkins.build.BuildRequest`
        What to build.

    Returns
    -------
    response : `requests.Response`
        Response from the server to the build trigger.
    """
    auth = config.getAuth()
    url = request.url
    data = dict(json=request.payload)
    with requests.Session() as session:
        headers = getCrumb(session, config.url, auth)
        logger.info("Triggering %s", url)
        logger.debug("Payload: %s", data["json"])
        try:
            response = session.post(url=url, auth=auth, headers=headers, data=data, timeout=TIMEOUT)
        except requests.RequestException as exc:
            raise TransportError(f"Failed to trigger {url}: {exc}") from exc
        return _check(response, f"trigger {url}")
