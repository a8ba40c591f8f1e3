"""Canonical file URLs for discovered catalog files."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from cairn.bitbucket.models import Repository

DEFAULT_BRANCH = "master"


def file_url(repository: Repository, file_path: str) -> str:
    """Return the web URL of ``file_path`` on the repository's default branch.

    ``file_path`` is used verbatim; search results already carry paths in the
    form the web UI expects.
    """
    branch = repository.default_branch or DEFAULT_BRANCH
    return f"{repository.web_url}/src/{branch}/{file_path}"
