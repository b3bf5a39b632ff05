"""
Book endpoints.
"""

import uuid
from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from deepread.api.deps import CurrentUser, DbSession
from deepread.engines.library.book_service import BookService
from deepread.engines.mastery.progress_tracker import ProgressTracker
from deepread.kernel.models.book import Book
from deepread.kernel.models.idea import Idea
from deepread.schemas.book import (
    BookCreate,
    BookDetailResponse,
    BookResponse,
    BookUpdate,
    MasterySummaryResponse,
)
from deepread.schemas.idea import IdeasReplaceRequest

router = APIRouter()


async def _get_book_or_404(service: BookService, book_id: uuid.UUID) -> Book:
    book = await service.get_book_by_id(book_id)
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )
    return book


async def _book_detail(db, book: Book) -> BookDetailResponse:
    summary = await ProgressTracker(db).book_summary(book.id)
    detail = BookDetailResponse.model_validate(book)
    detail.mastery = MasterySummaryResponse(**summary.model_dump(exclude={"book_id"}))
    return detail


@router.get("", response_model=List[BookResponse])
async def list_books(
    user: CurrentUser,
    db: DbSession,
):
    """List books in creation order."""
    books = await BookService(db).get_all_books()
    return [BookResponse.model_validate(book) for book in books]


@router.post("", response_model=BookDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    data: BookCreate,
    user: CurrentUser,
    db: DbSession,
):
    """Add a book. A book whose title contains the given title is returned instead of a duplicate."""
    service = BookService(db)
    try:
        book = await service.find_or_create_book(data.title, author=data.author)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    if data.author and not book.author:
        book = await service.update_book_details(book, author=data.author)
    return await _book_detail(db, book)


@router.get("/{book_id}", response_model=BookDetailResponse)
async def get_book(
    book_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    """Get a book with its ideas and mastery summary."""
    book = await _get_book_or_404(BookService(db), book_id)
    return await _book_detail(db, book)


@router.patch("/{book_id}", response_model=BookDetailResponse)
async def update_book(
    book_id: uuid.UUID,
    data: BookUpdate,
    user: CurrentUser,
    db: DbSession,
):
    """Rename a book or change its author."""
    service = BookService(db)
    book = await _get_book_or_404(service, book_id)
    try:
        book = await service.update_book_details(book, title=data.title, author=data.author)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    return await _book_detail(db, book)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    """Delete a book with its ideas, progress and primers."""
    service = BookService(db)
    book = await _get_book_or_404(service, book_id)
    await service.delete_book(book)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{book_id}/ideas", response_model=BookDetailResponse)
async def replace_ideas(
    book_id: uuid.UUID,
    data: IdeasReplaceRequest,
    user: CurrentUser,
    db: DbSession,
):
    """Replace a book's extracted ideas."""
    service = BookService(db)
    book = await _get_book_or_404(service, book_id)
    ideas = [
        Idea.create(
            id=item.id,
            title=item.title,
            description=item.description,
            book_title=book.title,
            depth_target=item.depth_target,
            importance=item.importance,
        )
        for item in data.ideas
    ]
    try:
        book = await service.save_ideas(ideas, book)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    return await _book_detail(db, book)
