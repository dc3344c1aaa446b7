"""Repository reference resolution.

A redirect stores whatever the owner published: either ``owner/repo`` or a
full repository URL. ``resolve`` turns that into a ``RepoReference`` or a
``ParseFailure``; it never raises and never guesses.
"""

from gitpeek.config import DEFAULT_WEB_BASE_URL
from gitpeek.types.repos import RepoReference
from gitpeek.types.results import ParseFailure


def resolve(
    raw_reference: str,
    host_prefix: str = DEFAULT_WEB_BASE_URL + "/",
) -> RepoReference | ParseFailure:
    """
    Parse a stored repository reference.

    Args:
        raw_reference: "owner/repo", "owner/repo/sub/path" or a URL on the upstream host
        host_prefix: URL prefix stripped before splitting (default: "https://github.com/")

    Returns:
        RepoReference for the first two path segments, or ParseFailure
    """
    if not isinstance(raw_reference, str):
        return ParseFailure(repr(raw_reference), "reference is not a string")

    full_name = raw_reference
    if full_name.startswith(host_prefix):
        full_name = full_name[len(host_prefix):]

    if full_name.endswith("/"):
        full_name = full_name[:-1]

    # Empty segments ("a//b", a leading slash) do not count towards owner/repo.
    parts = [part for part in full_name.split("/") if part]
    if len(parts) < 2:
        return ParseFailure(raw_reference, "expected at least owner and repository segments")
    if parts[0].endswith(":"):
        return ParseFailure(raw_reference, f"URL is not under {host_prefix}")

    return RepoReference(owner=parts[0], repo=parts[1])
