"""
Taskfiles MCP Server

Task files in a Git repository, with local drafts and cached version history.
"""

import asyncio
import logging
import sys
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

# Initialize FastMCP server
mcp = FastMCP("taskfiles")

logger = logging.getLogger(__name__)

# Global state
_initialized = False
_drafts = None
_history = None


async def ensure_initialized():
    """Ensure the provider, local store, draft store and history cache exist."""
    global _initialized, _drafts, _history
    if _initialized:
        return

    from taskfiles.config import get_config
    from taskfiles.providers import init_provider
    from taskfiles.services import DraftStore, HistoryCache, HistoryService
    from taskfiles.storage import init_store

    config = get_config()
    provider = await init_provider(config)
    store = await init_store(config)

    _drafts = DraftStore(store, expiry_hours=config.drafts.expiry_hours)
    _history = HistoryService(provider, HistoryCache(provider, config.history.cache_size))

    _initialized = True
    logger.info(f"Taskfiles initialized ({provider.name})")


async def shutdown():
    """Close the provider and store and forget cached state."""
    global _initialized, _drafts, _history
    from taskfiles.providers.factory import close_provider
    from taskfiles.storage.factory import close_store

    await close_provider()
    await close_store()
    _initialized = False
    _drafts = None
    _history = None


def _task_service():
    from taskfiles.services import TaskService
    return TaskService(drafts=_drafts)


# =============================================================================
# TASK TOOLS
# =============================================================================

@mcp.tool()
async def task_list(folder: Optional[str] = None, archived: bool = False) -> dict:
    """
    List tasks, ordered by priority then newest first.

    Args:
        folder: Task folder (defaults to the configured folder)
        archived: List the archive folder instead

    Returns:
        List of tasks with summary info
    """
    await ensure_initialized()

    try:
        tasks = await _task_service().list_tasks(folder, include_archived=archived)
    except Exception as e:
        return {"error": str(e)}

    return {
        "tasks": [
            {k: v for k, v in t.to_dict().items() if k != "content"}
            for t in tasks
        ],
        "count": len(tasks),
    }


@mcp.tool()
async def task_show(path: str) -> dict:
    """
    Get a task including its body.

    Args:
        path: Repository path of the task file

    Returns:
        Full task details
    """
    await ensure_initialized()
    from taskfiles.providers import FileNotFoundInRepo

    try:
        task = await _task_service().get_task(path)
    except FileNotFoundInRepo:
        return {"error": f"Task not found: {path}"}
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_create(
    title: str,
    body: str = "",
    priority: int = 3,
    tags: Optional[List[str]] = None,
    folder: Optional[str] = None,
) -> dict:
    """
    Create a new task file.

    The filename is ``P{priority}--{date}--{slug}.md``; a numeric suffix is
    added if a file with that name already exists.

    Args:
        title: Task title
        body: Markdown body
        priority: 1 (highest) to 5 (lowest); invalid values become 3
        tags: List of tags
        folder: Target folder (defaults to the configured folder)

    Returns:
        Created task details
    """
    await ensure_initialized()

    try:
        task = await _task_service().create_task(
            title=title,
            body=body,
            priority=priority,
            tags=tags,
            folder=folder,
        )
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_save(path: str, body: str, tags: Optional[List[str]] = None) -> dict:
    """
    Replace a task's body (and optionally its tags).

    Args:
        path: Repository path of the task file
        body: New Markdown body
        tags: New tags

    Returns:
        Updated task details
    """
    await ensure_initialized()

    service = _task_service()
    try:
        task = await service.get_task(path)
        task = await service.save_task(task, body, tags=tags)
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_update(
    path: str,
    title: Optional[str] = None,
    priority: Optional[int] = None,
) -> dict:
    """
    Change a task's title and/or priority.

    Both live in the filename, so the file may be renamed.

    Args:
        path: Repository path of the task file
        title: New title
        priority: New priority (1-5)

    Returns:
        Updated task details, including the new path
    """
    await ensure_initialized()

    service = _task_service()
    try:
        task = await service.get_task(path)
        task = await service.update_metadata(task, title=title, priority=priority)
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_archive(path: str, archived: bool = True) -> dict:
    """
    Move a task into (or out of) the archive folder.

    Args:
        path: Repository path of the task file
        archived: False to unarchive

    Returns:
        Task details at its new path
    """
    await ensure_initialized()

    service = _task_service()
    try:
        task = await service.get_task(path)
        task = await service.set_archived(task, archived)
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_search(query: str, folder: Optional[str] = None) -> dict:
    """
    Search active tasks by title and body.

    Args:
        query: Case-insensitive text to look for
        folder: Task folder (defaults to the configured folder)

    Returns:
        List of matching tasks
    """
    await ensure_initialized()

    try:
        tasks = await _task_service().search(query, folder)
    except Exception as e:
        return {"error": str(e)}

    return {
        "tasks": [t.to_dict() for t in tasks],
        "count": len(tasks),
        "query": query,
    }


@mcp.tool()
async def task_migrate_legacy(path: str, priority: Optional[int] = None) -> dict:
    """
    Rename a ``{date}-{slug}.md`` task to ``P{priority}--{date}--{slug}.md``.

    Args:
        path: Repository path of the legacy task file
        priority: Priority for the new name (defaults to the old header's, else 3)

    Returns:
        Task details at its new path
    """
    await ensure_initialized()

    service = _task_service()
    try:
        task = await service.get_task(path)
        if not task.is_legacy:
            return {"error": f"Not a legacy task filename: {path}"}
        task = await service.migrate_legacy(task, priority=priority)
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_delete(path: str) -> dict:
    """
    Delete a task file.

    Args:
        path: Repository path of the task file

    Returns:
        Confirmation
    """
    await ensure_initialized()

    service = _task_service()
    try:
        task = await service.get_task(path)
        await service.delete_task(task)
    except Exception as e:
        return {"error": str(e)}

    return {"deleted": path}


# =============================================================================
# HISTORY TOOLS
# =============================================================================

@mcp.tool()
async def history_list(path: str, preload: Optional[int] = None) -> dict:
    """
    List commits that touched a task file, newest first.

    The newest commits are previewed in the background so that opening them
    is instant.

    Args:
        path: Repository path of the task file
        preload: How many commits to preview (defaults to config)

    Returns:
        Commits and preload results
    """
    await ensure_initialized()
    from taskfiles.config import get_config

    limit = get_config().history.preload if preload is None else preload
    try:
        commits = await _history.list_commits(path)
    except Exception as e:
        return {"error": str(e)}

    previews = await _history.preload(path, commits, limit=limit)

    return {
        "commits": [c.to_dict() for c in commits],
        "count": len(commits),
        "preloaded": [p.commit_sha for p in previews if p.ok],
        "failed": {p.commit_sha: p.error for p in previews if not p.ok},
    }


@mcp.tool()
async def history_preview(path: str, commit_sha: str) -> dict:
    """
    Show a task file as it was at a commit.

    Args:
        path: Repository path of the task file
        commit_sha: Commit to show

    Returns:
        Parsed snapshot, or an error for that commit
    """
    await ensure_initialized()

    preview = await _history.preview(path, commit_sha)
    if not preview.ok:
        return {"error": preview.error, "commit_sha": commit_sha}
    return preview.to_dict()


@mcp.tool()
async def history_restore(path: str, commit_sha: str) -> dict:
    """
    Restore a task file to its content at a commit.

    The file content is written back verbatim as a new commit.

    Args:
        path: Repository path of the task file
        commit_sha: Commit to restore

    Returns:
        Restored task details
    """
    await ensure_initialized()

    preview = await _history.preview(path, commit_sha)
    if not preview.ok:
        return {"error": preview.error, "commit_sha": commit_sha}

    service = _task_service()
    try:
        task = await service.get_task(path)
        task = await service.restore_version(task, preview.snapshot)
    except Exception as e:
        return {"error": str(e)}

    return task.to_dict()


# =============================================================================
# DRAFT TOOLS
# =============================================================================

@mcp.tool()
async def draft_save(
    todo_id: str,
    path: str,
    edit_content: str,
    view_content: Optional[str] = None,
) -> dict:
    """
    Save an unsaved edit locally, replacing any previous draft.

    Args:
        todo_id: Current sha of the task being edited
        path: Repository path of the task
        edit_content: Raw editor text
        view_content: Rendered-view text (defaults to edit_content)

    Returns:
        The stored draft
    """
    await ensure_initialized()
    from taskfiles.models import Draft

    draft = Draft(
        todo_id=todo_id,
        path=path,
        edit_content=edit_content,
        view_content=edit_content if view_content is None else view_content,
    )
    await _drafts.clear_other_drafts(todo_id)
    await _drafts.save_draft(draft)
    return draft.to_dict()


@mcp.tool()
async def draft_get(path: str, todo_id: str = "") -> dict:
    """
    Get the local draft for a task, if one exists and has not expired.

    Args:
        path: Repository path of the task
        todo_id: Current sha of the task

    Returns:
        The draft, or ``{"draft": None}``
    """
    await ensure_initialized()

    draft = await _drafts.get_draft(todo_id, path)
    return {"draft": draft.to_dict() if draft else None}


@mcp.tool()
async def draft_clear() -> dict:
    """Discard the local draft."""
    await ensure_initialized()

    await _drafts.clear_draft()
    return {"cleared": True}


# =============================================================================
# HEALTH
# =============================================================================

@mcp.tool()
async def taskfiles_health() -> dict:
    """
    Check provider and local store connectivity.

    Returns:
        Health status including provider type and repository
    """
    await ensure_initialized()
    from taskfiles.config import get_config
    from taskfiles.providers import get_provider

    config = get_config()
    provider = get_provider(config)

    try:
        await provider.list_directory(config.tasks.folder)
        reachable = True
    except Exception as e:
        reachable = False
        logger.error(f"Health check failed: {e}")

    return {
        "status": "healthy" if reachable else "unhealthy",
        "provider": provider.name,
        "repository": config.repository,
        "folder": config.tasks.folder,
        "storage": config.storage.type,
        "history_cache_entries": len(_history.cache),
        "has_draft": await _drafts.has_draft(),
    }


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """Main entry point for taskfiles-mcp command."""
    import argparse

    parser = argparse.ArgumentParser(description="Taskfiles MCP Server")
    parser.add_argument("command", nargs="?", default="serve", help="Command to run (serve, check)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (stderr)")
    args = parser.parse_args()

    # stdout carries the MCP protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=args.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command == "check":
        async def do_check():
            await ensure_initialized()
            result = await taskfiles_health()
            await shutdown()
            print(result, file=sys.stderr)

        asyncio.run(do_check())
    else:
        # Start MCP server
        mcp.run()


if __name__ == "__main__":
    main()
