"""Where ``prca post`` gets the token it comments with."""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

# Checked in order. Actions sets GITHUB_TOKEN; GH_TOKEN is what the gh CLI itself honours.
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
GH_TIMEOUT_SECONDS = 5


def _gh_session_token() -> str | None:
    try:
        proc = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=GH_TIMEOUT_SECONDS)
    except FileNotFoundError:
        logger.debug("gh is not installed")
        return None
    except subprocess.TimeoutExpired:
        logger.warning("gh auth token did not answer within %ds", GH_TIMEOUT_SECONDS)
        return None
    if proc.returncode != 0:
        logger.debug("gh has no logged-in session: %s", proc.stderr.strip())
        return None
    return proc.stdout.strip() or None


def resolve_github_token() -> str | None:
    """First token found in TOKEN_ENV_VARS, else the local gh session's, else None."""
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            logger.debug("Using the GitHub token from $%s", name)
            return value
    token = _gh_session_token()
    if token:
        logger.debug("Using the GitHub token of the gh session")
    return token
