# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Raw URL resolution — map a repository's browse URL to a raw-file address.

Each hosting convention is tried in order: a literal host-substring check,
then a pattern that captures the owner/repository parts. A convention whose
pattern does not match falls through to the next one; unrecognized hosts use
``<repo>/raw/<branch>/<path>``.

Examples:
    build_raw_url("https://github.com/acme/widgets.git", "main", "agents.json")
        -> "https://raw.githubusercontent.com/acme/widgets/main/agents.json"
    build_raw_url("https://git.example.com/acme/widgets", "main", "agents.json")
        -> "https://git.example.com/acme/widgets/raw/main/agents.json"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class HostConvention:
    name: str
    host: str
    pattern: Pattern[str]
    template: Callable[[Tuple[str, ...], str, str], str]

    def resolve(self, repo_url: str, branch: str, path: str) -> Optional[str]:
        if self.host not in repo_url:
            return None
        match = self.pattern.search(repo_url)
        if not match:
            return None
        return self.template(match.groups(), branch, path)


HOST_CONVENTIONS: List[HostConvention] = [
    HostConvention(
        name="github",
        host="github.com",
        pattern=re.compile(r"github\.com[/:]([\w.-]+)/([\w.-]+)"),
        template=lambda g, branch, path: (
            f"https://raw.githubusercontent.com/{g[0]}/{g[1]}/{branch}/{path}"
        ),
    ),
    HostConvention(
        name="gitlab",
        host="gitlab.com",
        pattern=re.compile(r"gitlab\.com[/:]([\w.-]+)/([\w.-]+)"),
        template=lambda g, branch, path: (
            f"https://gitlab.com/{g[0]}/{g[1]}/-/raw/{branch}/{path}"
        ),
    ),
    HostConvention(
        name="azure-devops",
        host="dev.azure.com",
        pattern=re.compile(r"dev\.azure\.com/([^/]+)/([^/]+)/_git/([^/]+)"),
        template=lambda g, branch, path: (
            f"https://dev.azure.com/{g[0]}/{g[1]}/_apis/git/repositories/{g[2]}"
            f"/items?path=/{path}&version=GB{branch}&api-version=7.0"
        ),
    ),
    HostConvention(
        name="bitbucket",
        host="bitbucket.org",
        pattern=re.compile(r"bitbucket\.org[/:]([\w.-]+)/([\w.-]+)"),
        template=lambda g, branch, path: (
            f"https://bitbucket.org/{g[0]}/{g[1]}/raw/{branch}/{path}"
        ),
    ),
]


def clean_repo_url(repo_url: str) -> str:
    """Strip whitespace, trailing slashes and a trailing ``.git``."""
    url = repo_url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url


def build_raw_url(repo_url: str, branch: str, path: str) -> str:
    """Resolve the HTTP address that returns ``path``'s raw content on ``branch``."""
    url = clean_repo_url(repo_url)
    path = path.lstrip("/")
    for convention in HOST_CONVENTIONS:
        resolved = convention.resolve(url, branch, path)
        if resolved is not None:
            return resolved
    return f"{url}/raw/{branch}/{path}"
