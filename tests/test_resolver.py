"""
Property-based tests for repository reference resolution.

Feature: gitpeek
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from gitpeek.resolver import resolve
from gitpeek.types.repos import RepoReference
from gitpeek.types.results import ParseFailure

segment_strategy = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd"), whitelist_characters="-_."),
    min_size=1,
    max_size=30,
)


@given(owner=segment_strategy, repo=segment_strategy)
@settings(max_examples=100)
def test_property_short_form_resolves(owner: str, repo: str) -> None:
    """For any "owner/repo", resolution yields exactly those two segments."""
    assert resolve(f"{owner}/{repo}") == RepoReference(owner=owner, repo=repo)


@given(owner=segment_strategy, repo=segment_strategy, trailing=st.booleans())
@settings(max_examples=100)
def test_property_url_form_matches_short_form(owner: str, repo: str, trailing: bool) -> None:
    """A URL on the upstream host resolves the same as its short form."""
    url = f"https://github.com/{owner}/{repo}" + ("/" if trailing else "")
    assert resolve(url) == resolve(f"{owner}/{repo}")


@given(
    owner=segment_strategy,
    repo=segment_strategy,
    rest=st.lists(segment_strategy, min_size=1, max_size=4),
)
@settings(max_examples=100)
def test_property_extra_segments_ignored(owner: str, repo: str, rest: list[str]) -> None:
    """Only the first two segments are used; deeper paths do not change the result."""
    result = resolve("/".join([owner, repo, *rest]))
    assert result == RepoReference(owner=owner, repo=repo)


@given(single=segment_strategy)
@settings(max_examples=100)
def test_property_single_segment_fails(single: str) -> None:
    result = resolve(single)
    assert isinstance(result, ParseFailure)
    assert result.raw == single


@given(value=st.one_of(st.none(), st.integers(), st.lists(st.text())))
@settings(max_examples=50)
def test_property_non_string_fails(value) -> None:
    assert isinstance(resolve(value), ParseFailure)


def test_full_name() -> None:
    assert resolve("https://github.com/acme/widgets/").full_name == "acme/widgets"


def test_tree_url() -> None:
    assert resolve("https://github.com/acme/widgets/tree/main/src") == RepoReference("acme", "widgets")


def test_empty_and_bare_host() -> None:
    assert isinstance(resolve(""), ParseFailure)
    assert isinstance(resolve("https://github.com/"), ParseFailure)
    assert isinstance(resolve("acme/"), ParseFailure)


def test_empty_segments_skipped() -> None:
    assert resolve("acme//widgets") == RepoReference("acme", "widgets")
    assert resolve("/acme/widgets") == RepoReference("acme", "widgets")


def test_other_host_fails() -> None:
    """A URL on a different host is rejected rather than split into scheme and host."""
    for reference in ["https://gitlab.com/acme/widgets", "http://github.com/acme/widgets", "git://github.com/acme/widgets"]:
        result = resolve(reference)
        assert isinstance(result, ParseFailure)
        assert result.raw == reference


def test_custom_host_prefix() -> None:
    result = resolve("https://git.example.com/acme/widgets", host_prefix="https://git.example.com/")
    assert result == RepoReference("acme", "widgets")
