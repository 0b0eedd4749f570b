import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_owner
from app.middleware.rate_limit import write_limiter
from app.models import Folder, Note
from app.routers.notes import list_owner_notes
from app.schemas.folder import FolderCreate, FolderResponse, FolderUpdate, TreeBuildResult
from app.services.notes_tree import build_tree_report, get_folder_path, is_descendant_or_self

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/folders", tags=["folders"])


async def _get_folder_for_owner(db: AsyncSession, folder_id: str, owner: str) -> Folder | None:
    result = await db.execute(
        select(Folder).where(Folder.id == folder_id, Folder.owner_address == owner)
    )
    return result.scalar_one_or_none()


async def list_owner_folders(db: AsyncSession, owner: str) -> list[FolderResponse]:
    result = await db.execute(
        select(Folder).where(Folder.owner_address == owner).order_by(Folder.name, Folder.id)
    )
    return [FolderResponse.model_validate(f) for f in result.scalars().all()]


@router.get("", response_model=list[FolderResponse])
async def list_folders(
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> list[FolderResponse]:
    return await list_owner_folders(db, owner)


@router.get("/tree", response_model=TreeBuildResult)
async def get_folder_tree(
    include_notes: bool = Query(True),
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> TreeBuildResult:
    folders = await list_owner_folders(db, owner)
    notes = await list_owner_notes(db, owner) if include_notes else []
    tree = build_tree_report(notes, folders)
    if tree.anomalies:
        logger.warning(
            "Recovered malformed folder references",
            extra={
                "owner": owner,
                "anomalies": [a.model_dump() for a in tree.anomalies],
            },
        )
    return tree


@router.get("/{folder_id}/path", response_model=list[FolderResponse])
async def get_path(
    folder_id: str,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> list[FolderResponse]:
    folders = await list_owner_folders(db, owner)
    path = get_folder_path(folder_id, folders)
    if not path:
        raise HTTPException(status_code=404, detail="Folder not found")
    return path


@router.post("", response_model=FolderResponse, status_code=201)
@write_limiter
async def create_folder(
    request: Request,
    data: FolderCreate,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> Folder:
    if data.parent_id is not None:
        parent = await _get_folder_for_owner(db, data.parent_id, owner)
        if parent is None:
            raise HTTPException(status_code=400, detail="Parent folder not found")
    folder = Folder(owner_address=owner, name=data.name, parent_id=data.parent_id)
    db.add(folder)
    await db.commit()
    await db.refresh(folder)
    return folder


@router.patch("/{folder_id}", response_model=FolderResponse)
@write_limiter
async def update_folder(
    request: Request,
    folder_id: str,
    data: FolderUpdate,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> Folder:
    folder = await _get_folder_for_owner(db, folder_id, owner)
    if folder is None:
        raise HTTPException(status_code=404, detail="Folder not found")
    if data.name is not None:
        folder.name = data.name
    if "parent_id" in data.model_fields_set:
        if data.parent_id is not None:
            parent = await _get_folder_for_owner(db, data.parent_id, owner)
            if parent is None:
                raise HTTPException(status_code=400, detail="Parent folder not found")
            folders = await list_owner_folders(db, owner)
            if is_descendant_or_self(parent.id, folder_id, folders):
                raise HTTPException(
                    status_code=400,
                    detail="Cannot move folder into itself or its own subfolder",
                )
        folder.parent_id = data.parent_id
    await db.commit()
    await db.refresh(folder)
    return folder


@router.delete("/{folder_id}", status_code=204)
@write_limiter
async def delete_folder(
    request: Request,
    folder_id: str,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> None:
    """Delete a folder, moving its notes and subfolders up to its parent (or root)."""
    folder = await _get_folder_for_owner(db, folder_id, owner)
    if folder is None:
        raise HTTPException(status_code=404, detail="Folder not found")
    new_parent = folder.parent_id
    moved_notes = await db.execute(
        update(Note)
        .where(Note.owner_address == owner, Note.folder_id == folder_id)
        .values(folder_id=new_parent)
    )
    moved_folders = await db.execute(
        update(Folder)
        .where(Folder.owner_address == owner, Folder.parent_id == folder_id)
        .values(parent_id=new_parent)
    )
    await db.delete(folder)
    await db.commit()
    logger.info(
        "Folder deleted",
        extra={
            "folder_id": folder_id,
            "moved_notes": moved_notes.rowcount,
            "moved_folders": moved_folders.rowcount,
        },
    )
