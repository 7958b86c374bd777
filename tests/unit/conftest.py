"""Shared fixtures: an in-memory directory standing in for the ldap3 driver."""
from typing import Any, Callable, Dict, List, Sequence, Union

import pytest

from ldap_user_provider.models import SearchResult

Entries = Union[List[dict], Callable[[str], List[dict]]]


class FakeDirectory:
    """Directory port returning canned entries per search base."""

    def __init__(self) -> None:
        self.results: Dict[str, Entries] = {}
        self.searches: List[tuple] = []
        self.binds: List[tuple] = []
        self.bind_result = True

    def search(self, base_dn: str, search_filter: str, attributes: Sequence[str]) -> SearchResult:
        self.searches.append((base_dn, search_filter, list(attributes)))
        entries = self.results.get(base_dn, [])
        if callable(entries):
            entries = entries(search_filter)
        return SearchResult(tuple(entries))

    def bind(self, user: Any, password: str) -> bool:
        self.binds.append((user, password))
        return self.bind_result


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()
