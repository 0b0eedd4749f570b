from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_owner
from app.middleware.rate_limit import write_limiter
from app.models import Folder, Note
from app.schemas.note import NoteCreate, NoteResponse, NoteUpdate, UniqueTitleResponse
from app.services.notes_tree import generate_unique_title, get_recent_notes, search_notes

router = APIRouter(prefix="/notes", tags=["notes"])


async def _get_note_for_owner(db: AsyncSession, note_id: str, owner: str) -> Note | None:
    result = await db.execute(
        select(Note).where(Note.id == note_id, Note.owner_address == owner)
    )
    return result.scalar_one_or_none()


async def _folder_exists(db: AsyncSession, folder_id: str, owner: str) -> bool:
    result = await db.execute(
        select(Folder.id).where(Folder.id == folder_id, Folder.owner_address == owner)
    )
    return result.scalar_one_or_none() is not None


async def list_owner_notes(
    db: AsyncSession,
    owner: str,
    folder_id: str | None = None,
    root_only: bool = False,
) -> list[NoteResponse]:
    """Owner's notes, most recently updated first. Optionally one folder or root only."""
    q = select(Note).where(Note.owner_address == owner)
    if root_only:
        q = q.where(Note.folder_id.is_(None))
    elif folder_id is not None:
        q = q.where(Note.folder_id == folder_id)
    result = await db.execute(q.order_by(Note.updated_at.desc()))
    return [NoteResponse.model_validate(n) for n in result.scalars().all()]


async def _titles_in_folder(db: AsyncSession, owner: str, folder_id: str | None) -> list[str]:
    q = select(Note.title).where(Note.owner_address == owner)
    if folder_id is None:
        q = q.where(Note.folder_id.is_(None))
    else:
        q = q.where(Note.folder_id == folder_id)
    result = await db.execute(q)
    return list(result.scalars().all())


@router.get("", response_model=list[NoteResponse])
async def list_notes(
    folder_id: str | None = Query(None, description="Only notes in this folder"),
    root_only: bool = Query(False, description="Only notes outside any folder"),
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> list[NoteResponse]:
    return await list_owner_notes(db, owner, folder_id=folder_id, root_only=root_only)


@router.get("/search", response_model=list[NoteResponse])
async def search(
    q: str = Query("", max_length=500),
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> list[NoteResponse]:
    """Substring search over title and content. Empty query lists every note."""
    notes = await list_owner_notes(db, owner)
    return list(search_notes(notes, q))


@router.get("/recent", response_model=list[NoteResponse])
async def recent(
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> list[NoteResponse]:
    notes = await list_owner_notes(db, owner)
    return get_recent_notes(notes, limit or settings.recent_notes_limit)


@router.get("/unique-title", response_model=UniqueTitleResponse)
async def unique_title(
    base: str | None = Query(None, max_length=255),
    folder_id: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> UniqueTitleResponse:
    titles = await _titles_in_folder(db, owner, folder_id)
    base_title = (base or "").strip() or settings.default_note_title
    return UniqueTitleResponse(title=generate_unique_title(titles, base_title))


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> Note:
    note = await _get_note_for_owner(db, note_id, owner)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.post("", response_model=NoteResponse, status_code=201)
@write_limiter
async def create_note(
    request: Request,
    data: NoteCreate,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> Note:
    if data.folder_id is not None and not await _folder_exists(db, data.folder_id, owner):
        raise HTTPException(status_code=400, detail="Folder not found")
    titles = await _titles_in_folder(db, owner, data.folder_id)
    base_title = (data.title or "").strip() or settings.default_note_title
    now = datetime.now(timezone.utc)
    note = Note(
        owner_address=owner,
        folder_id=data.folder_id,
        title=generate_unique_title(titles, base_title),
        content=data.content,
        created_at=now,
        updated_at=now,
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note


@router.patch("/{note_id}", response_model=NoteResponse)
@write_limiter
async def update_note(
    request: Request,
    note_id: str,
    data: NoteUpdate,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> Note:
    note = await _get_note_for_owner(db, note_id, owner)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    if data.title is not None:
        note.title = data.title
    if data.content is not None:
        note.content = data.content
    if "folder_id" in data.model_fields_set:
        if data.folder_id is not None and not await _folder_exists(db, data.folder_id, owner):
            raise HTTPException(status_code=400, detail="Folder not found")
        note.folder_id = data.folder_id
    note.updated_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(note)
    return note


@router.delete("/{note_id}", status_code=204)
@write_limiter
async def delete_note(
    request: Request,
    note_id: str,
    db: AsyncSession = Depends(get_db),
    owner: str = Depends(get_current_owner),
) -> None:
    note = await _get_note_for_owner(db, note_id, owner)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    await db.delete(note)
    await db.commit()
