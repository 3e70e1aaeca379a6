"""
Branch name escaping for the sonar.branch analysis parameter.
"""
import re

INVALID_BRANCH_CHARACTERS = re.compile(r"[^0-9a-zA-Z:_.\-]")


def escape_invalid_branch_characters(branch_name: str) -> str:
    """Replace every character Sonar rejects in a branch key with ``_``."""
    return INVALID_BRANCH_CHARACTERS.sub("_", branch_name)
