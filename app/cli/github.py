"""
GitHub client — repository creation over the REST API.

Uses ``urllib.request``; the token comes from ``GITHUB_TOKEN``.
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any

from pydantic import BaseModel, ValidationError

from app.cli.errors import GitHubError

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
USER_AGENT = "service-template-cli/1.0"
TOKEN_VAR = "GITHUB_TOKEN"


class CreatedRepository(BaseModel):
    full_name: str
    html_url: str
    ssh_url: str
    clone_url: str
    private: bool


def get_github_token(environ: dict[str, str] | None = None) -> str:
    """Read the API token or fail before any other work happens."""
    env = os.environ if environ is None else environ
    token = env.get(TOKEN_VAR, "").strip()
    if not token:
        raise GitHubError(
            f"{TOKEN_VAR} environment variable is required. Please set it and try again."
        )
    return token


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(self, token: str, api_base: str = API_BASE, timeout: int = 30) -> None:
        if not token:
            raise GitHubError("GitHub token cannot be empty")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _request(self, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(
            f"{self._api_base}{path}",
            data=data,
            method=method,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": USER_AGENT,
                "Content-Type": "application/json",
            },
        )
        logger.debug("%s %s", method, req.full_url)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            raw = e.read().decode("utf-8", errors="replace")
            try:
                message = json.loads(raw).get("message", raw)
            except (ValueError, AttributeError):
                message = raw or "Unknown error"
            raise GitHubError(message, status=e.code) from e
        except urllib.error.URLError as e:
            raise GitHubError(f"Failed to reach GitHub API: {e.reason}") from e

    def create_repository(
        self,
        name: str,
        description: str | None,
        private: bool,
        owner: str,
    ) -> CreatedRepository:
        """Create a repository for the user, or for an org when ``owner`` is ``org/user``."""
        if "/" in owner:
            path = f"/orgs/{owner.split('/')[0]}/repos"
        else:
            path = "/user/repos"

        payload = self._request(
            "POST",
            path,
            {
                "name": name,
                "description": description,
                "private": private,
                "auto_init": False,
            },
        )
        try:
            repo = CreatedRepository.model_validate(payload)
        except ValidationError as e:
            raise GitHubError(f"Failed to parse GitHub API response: {e}") from e
        logger.info("Created GitHub repository %s", repo.full_name)
        return repo

    def get_authenticated_user(self) -> dict[str, Any]:
        return self._request("GET", "/user")
