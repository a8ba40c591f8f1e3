"""Unit tests for search query, repository filter and file URL rules."""

from __future__ import annotations

import re

import msgspec
import pytest

from cairn.bitbucket.models import Repository
from cairn.provider import (
    SEARCH_FIELDS,
    ProviderFilters,
    build_search_query,
    file_url,
    matches_filters,
)
from cairn.provider.query import catalog_filename
from tests.helpers.fakes import repository_payload


def _repo(slug: str = "service-api", **kwargs: object) -> Repository:
    return msgspec.convert(repository_payload(slug, **kwargs), Repository)


class TestSearchQuery:
    """Tests for ``build_search_query``."""

    def test_unscoped_query(self) -> None:
        """The filename is quoted and the full path constrains the search."""
        search = build_search_query("/catalog-info.yaml")

        assert search.query == '"catalog-info.yaml" path:/catalog-info.yaml'

    def test_repository_scoped_query(self) -> None:
        """A repository slug appends a ``repo:`` term."""
        search = build_search_query("services/*/catalog.yaml", "api")

        assert search.query == '"catalog.yaml" path:services/*/catalog.yaml repo:api'

    def test_field_projection(self) -> None:
        """Fields drop content matches and nested links but keep the web link."""
        fields = build_search_query("/catalog-info.yaml").fields.split(",")

        assert fields == list(SEARCH_FIELDS)
        assert fields[0] == "-values.content_matches"
        assert fields[-1] == "+values.file.commit.repository.links.html.href"
        assert "-values.*.*.*.links" in fields

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/catalog-info.yaml", "catalog-info.yaml"),
            ("catalog-info.yaml", "catalog-info.yaml"),
            ("a/b/component.yml", "component.yml"),
        ],
    )
    def test_catalog_filename(self, path: str, expected: str) -> None:
        """The filename is the last path segment."""
        assert catalog_filename(path) == expected


class TestRepositoryFilter:
    """Tests for ``matches_filters``."""

    def test_no_filters_always_match(self) -> None:
        """Absent filters accept every repository."""
        assert matches_filters(None, _repo())
        assert matches_filters(ProviderFilters(), _repo(project_key=None))

    @pytest.mark.parametrize(
        ("project_pattern", "slug_pattern", "expected"),
        [
            ("^PLAT$", None, True),
            ("^OPS$", None, False),
            (None, "^service-", True),
            (None, "^web-", False),
            ("^PLAT$", "^service-", True),
            ("^PLAT$", "^web-", False),
            ("^OPS$", "^service-", False),
            ("LA", "api", True),
        ],
    )
    def test_patterns(
        self, project_pattern: str | None, slug_pattern: str | None, expected: bool
    ) -> None:
        """Both patterns must match; unanchored patterns match anywhere."""
        filters = ProviderFilters(
            project_key=re.compile(project_pattern) if project_pattern else None,
            repo_slug=re.compile(slug_pattern) if slug_pattern else None,
        )

        assert matches_filters(filters, _repo()) is expected

    def test_repository_without_project_fails_project_pattern(self) -> None:
        """A personal repository never matches a project key pattern."""
        filters = ProviderFilters(project_key=re.compile(".*"))

        assert not matches_filters(filters, _repo(project_key=None))


class TestFileUrl:
    """Tests for ``file_url``."""

    def test_uses_default_branch(self) -> None:
        """The repository's main branch is used in the URL."""
        repository = _repo("r", branch="main")

        assert (
            file_url(repository, "catalog-info.yaml")
            == "https://bitbucket.org/acme/r/src/main/catalog-info.yaml"
        )

    def test_falls_back_to_master(self) -> None:
        """Repositories without a main branch use ``master``."""
        repository = _repo("r", branch=None)

        assert file_url(repository, "a b/catalog-info.yaml") == (
            "https://bitbucket.org/acme/r/src/master/a b/catalog-info.yaml"
        ), "paths are used verbatim without re-encoding"
