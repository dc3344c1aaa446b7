"""
HTTP surface for share links and the image relay.

Visitors are unauthenticated, so every failure is reported with a fixed
message. A missing redirect, a revoked token and a deleted repository all
look the same from outside; the cause only goes to the log.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from gitpeek.aggregator import ContentAggregator
from gitpeek.client import GitHubClient
from gitpeek.config import Settings
from gitpeek.logging import get_logger
from gitpeek.presentation import breadcrumbs, detect_language, format_file_size, looks_binary
from gitpeek.rendering import LicenseRenderer, MarkdownRenderer, MediaResolver, RenderContext
from gitpeek.store import Store
from gitpeek.types.repos import FileEntry, RepositorySnapshot

logger = get_logger("api")

router = APIRouter()

NOT_FOUND_MESSAGE = "Repository not found"

_markdown = MarkdownRenderer()
_license = LicenseRenderer()


def _aggregator(request: Request) -> ContentAggregator:
    return request.app.state.aggregator


def _not_found(message: str = NOT_FOUND_MESSAGE) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": message})


def _entry_json(entry: FileEntry) -> dict[str, Any]:
    return {
        "name": entry.name,
        "path": entry.path,
        "type": entry.kind,
        "size": entry.size,
        "sizeLabel": format_file_size(entry.size) if entry.size is not None else None,
        "downloadUrl": entry.download_url,
    }


async def _snapshot_json(
    snapshot: RepositorySnapshot,
    redirect_id: str,
    aggregator: ContentAggregator,
    settings: Settings,
) -> dict[str, Any]:
    metadata = snapshot.metadata
    context = RenderContext(
        repo_html_url=metadata.html_url,
        branch=metadata.default_branch,
        redirect_id=redirect_id,
        web_host=settings.web_host,
        raw_host=settings.raw_host,
    )
    resolver = MediaResolver(aggregator.fetch_image_as_data_url)

    readme = None
    if snapshot.readme is not None:
        rendered = _markdown.render(snapshot.readme, context)
        readme = {"html": await resolver.finish(rendered, context)}

    license_doc = None
    if snapshot.license is not None:
        rendered = _license.render(snapshot.license, context)
        license_doc = {"title": rendered.title, "html": await resolver.finish(rendered, context)}

    return {
        "repo": {
            "id": metadata.id,
            "name": metadata.name,
            "fullName": metadata.full_name,
            "description": metadata.description,
            "htmlUrl": metadata.html_url,
            "cloneUrl": metadata.clone_url,
            "language": metadata.language,
            "visibility": metadata.visibility,
            "defaultBranch": metadata.default_branch,
            "stars": metadata.stargazers_count,
            "forks": metadata.forks_count,
            "openIssues": metadata.open_issues_count,
            "createdAt": metadata.created_at.isoformat() if metadata.created_at else None,
            "updatedAt": metadata.updated_at.isoformat() if metadata.updated_at else None,
        },
        "entries": [_entry_json(entry) for entry in snapshot.entries],
        "readme": readme,
        "license": license_doc,
    }


@router.get("/api/image")
async def image_endpoint(request: Request, repoId: str | None = None, path: str | None = None):
    """Relay a private repository image as a data URL."""
    if not repoId or not path:
        return JSONResponse(status_code=400, content={"error": "Missing repoId or path parameter"})

    try:
        image_data = await _aggregator(request).fetch_image_as_data_url(repoId, path)
    except Exception:
        logger.exception("Image relay failed for %s", repoId)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    if image_data is None:
        return _not_found("Image not found or access denied")

    return {"imageData": image_data}


@router.get("/api/repos/{redirect_id}")
async def snapshot_endpoint(request: Request, redirect_id: str):
    """Initial load of a share link: snapshot plus rendered README and LICENSE."""
    aggregator = _aggregator(request)
    snapshot = await aggregator.build_snapshot(redirect_id)
    if not isinstance(snapshot, RepositorySnapshot):
        return _not_found()

    await aggregator.record_view(redirect_id)
    return await _snapshot_json(snapshot, redirect_id, aggregator, request.app.state.settings)


@router.get("/api/repos/{redirect_id}/contents")
async def contents_endpoint(request: Request, redirect_id: str, path: str = ""):
    entries = await _aggregator(request).fetch_directory(redirect_id, path)
    if entries is None:
        return _not_found("Failed to load directory contents")
    return {
        "path": path,
        "breadcrumbs": [{"name": name, "path": crumb} for name, crumb in breadcrumbs(path)],
        "entries": [_entry_json(entry) for entry in entries],
    }


@router.get("/api/repos/{redirect_id}/file")
async def file_endpoint(request: Request, redirect_id: str, path: str | None = None):
    if not path:
        return JSONResponse(status_code=400, content={"error": "Missing path parameter"})

    content = await _aggregator(request).fetch_file(redirect_id, path)
    if content is None:
        return _not_found("Failed to load file content")
    return {
        "path": path,
        "content": content,
        "language": detect_language(path),
        "binary": looks_binary(content),
    }


@router.get("/api/repos/{redirect_id}/stats")
def stats_endpoint(request: Request, redirect_id: str):
    store: Store = request.app.state.store
    if store.get_redirect(redirect_id) is None:
        return _not_found()
    stats = store.get_view_stats(redirect_id)
    return {
        "count": stats.count,
        "lastViewed": stats.last_viewed_at.isoformat() if stats.last_viewed_at else None,
    }


def create_app(
    settings: Settings,
    store: Store | None = None,
    github: GitHubClient | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Runtime settings
        store: Store to use (default: one built from ``settings.database_url``)
        github: Upstream client to use (default: one built from ``settings``)
    """
    store = store or Store.from_url(settings.database_url)
    github = github or GitHubClient(
        base_url=settings.api_base_url,
        raw_base_url=settings.raw_base_url,
        timeout=settings.timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await github.close()

    get_logger().setLevel(settings.log_level)

    app = FastAPI(title="GitPeek", description="Read-only share links for private repositories.", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.aggregator = ContentAggregator(store, github, web_base_url=settings.web_base_url)
    app.include_router(router)
    return app
