from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from diffviewer.config.settings import Settings
from diffviewer.domain.schemas.comments import (
    AddCommentRequest,
    CommentEnvelope,
    CommentList,
    MigrateCommentsRequest,
    UpdateCommentRequest,
)
from diffviewer.domain.schemas.diff import DiffResponse, FileChange
from diffviewer.domain.schemas.git import FileContent, FolderList, GitStatus
from diffviewer.services.comment_store import CommentStore
from diffviewer.services.review_service import build_metadata, load_diff
from diffviewer.tools.git_diff import get_status, list_folders, read_file_content, resolve_repo


router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_comment_store(request: Request) -> CommentStore:
    return request.app.state.comment_store


async def _repo(settings: Settings, folder_name: str):
    return await asyncio.to_thread(
        resolve_repo, settings.source_dir, folder_name, timeout=settings.git_timeout
    )


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "sourceDir": str(settings.source_dir),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/schema/diff")
async def diff_schema():
    return FileChange.model_json_schema(by_alias=True)


@router.get("/api/folders", response_model=FolderList)
async def folders(settings: Settings = Depends(get_settings)):
    items = await asyncio.to_thread(list_folders, settings.source_dir, timeout=settings.git_timeout)
    return FolderList(folders=items)


@router.get("/api/status/{folder_name}", response_model=GitStatus)
async def status(folder_name: str, settings: Settings = Depends(get_settings)):
    repo = await _repo(settings, folder_name)
    return await asyncio.to_thread(get_status, repo, timeout=settings.git_timeout)


@router.get("/api/diff/{folder_name}", response_model=DiffResponse)
async def diff(folder_name: str, settings: Settings = Depends(get_settings)):
    repo = await _repo(settings, folder_name)
    return await asyncio.to_thread(
        load_diff,
        repo,
        context_lines=settings.diff_context_lines,
        timeout=settings.git_timeout,
    )


@router.get("/api/file/{folder_name}/{file_path:path}", response_model=FileContent)
async def file_content(folder_name: str, file_path: str, settings: Settings = Depends(get_settings)):
    repo = await _repo(settings, folder_name)
    content = await asyncio.to_thread(read_file_content, repo, file_path)
    return FileContent(content=content)


@router.get("/api/comments/{folder_name}", response_model=CommentList)
async def load_comments(folder_name: str, store: CommentStore = Depends(get_comment_store)):
    return CommentList(comments=await asyncio.to_thread(store.load, folder_name))


@router.post("/api/comments/{folder_name}", response_model=CommentEnvelope)
async def add_comment(
    folder_name: str,
    req: AddCommentRequest,
    store: CommentStore = Depends(get_comment_store),
):
    return CommentEnvelope(comment=await asyncio.to_thread(store.add, folder_name, req.comment))


@router.put("/api/comments/{folder_name}/{comment_id}")
async def update_comment(
    folder_name: str,
    comment_id: str,
    req: UpdateCommentRequest,
    store: CommentStore = Depends(get_comment_store),
):
    await asyncio.to_thread(store.update, folder_name, comment_id, req.content)
    return {"success": True}


@router.delete("/api/comments/{folder_name}/{comment_id}")
async def delete_comment(folder_name: str, comment_id: str, store: CommentStore = Depends(get_comment_store)):
    await asyncio.to_thread(store.delete, folder_name, comment_id)
    return {"success": True}


@router.delete("/api/comments/{folder_name}")
async def clear_comments(folder_name: str, store: CommentStore = Depends(get_comment_store)):
    await asyncio.to_thread(store.clear, folder_name)
    return {"success": True}


@router.post("/api/comments/{folder_name}/migrate")
async def migrate_comments(
    folder_name: str,
    req: MigrateCommentsRequest,
    store: CommentStore = Depends(get_comment_store),
):
    added = await asyncio.to_thread(store.merge, folder_name, req.comments)
    return {"success": True, "migrated": added}


@router.get("/api/metadata/{folder_name}")
async def metadata(
    folder_name: str,
    settings: Settings = Depends(get_settings),
    store: CommentStore = Depends(get_comment_store),
):
    comments = await asyncio.to_thread(store.load, folder_name)
    repo = await _repo(settings, folder_name)
    git_status = await asyncio.to_thread(get_status, repo, timeout=settings.git_timeout)

    diff_result = DiffResponse()
    if git_status.has_changes:
        diff_result = await asyncio.to_thread(
            load_diff,
            repo,
            context_lines=settings.diff_context_lines,
            timeout=settings.git_timeout,
        )

    return build_metadata(
        folder_name=folder_name,
        comments=comments,
        status=git_status,
        diff=diff_result,
    )
