"""
Find the Sonar dashboard URL in a build log.
"""
import re
from typing import Iterable, Optional

from .types import Build

SUCCESS_SENTINEL = "ANALYSIS SUCCESSFUL, you can browse "

# any character except a Java line terminator
LINE_CONTENT = "[^\r\n\u0085\u2028\u2029]*"

URL_PATTERN_IN_LOGS = re.compile(LINE_CONTENT + re.escape(SUCCESS_SENTINEL) + "(" + LINE_CONTENT + ")")


def extract_sonar_url(lines: Iterable[str]) -> Optional[str]:
    """
    Scan log lines once, top to bottom, and return the URL from the last
    line announcing a successful analysis.

    Args:
        lines: Forward-only sequence of log lines, with or without line
            terminators

    Returns:
        The captured URL, or None when no line matched
    """
    url = None
    for line in lines:
        match = URL_PATTERN_IN_LOGS.fullmatch(line.rstrip("\r\n"))
        if match:
            url = match.group(1)
    return url


def extract_sonar_project_url_from_logs(build: Build) -> Optional[str]:
    """Read the log of ``build`` to find the URL of the project dashboard.

    Read errors propagate; a URL seen before the error is not returned.
    """
    with build.open_log() as log:
        return extract_sonar_url(log)
