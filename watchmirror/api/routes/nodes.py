"""Mirrored tree listing endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from loguru import logger

from watchmirror.api.dependencies import get_query_service
from watchmirror.core.errors import MissingParameterError, StoreUnavailableError
from watchmirror.database.schemas import FsNode, NodePage
from watchmirror.services.query_service import QueryService


router = APIRouter(tags=["nodes"])


def _with_total_count(response: Response, page: NodePage) -> List[FsNode]:
    # Multi-item responses carry the total in a header the browser may read
    response.headers["X-Total-Count"] = str(page.total)
    return page.nodes


@router.get("/all", response_model=List[FsNode])
async def list_all(
    response: Response,
    query_service: QueryService = Depends(get_query_service),
) -> List[FsNode]:
    """List every mirrored node, ordered by full path."""
    try:
        page = await query_service.list_all()
    except StoreUnavailableError as e:
        logger.error(f"Failed to retrieve all the documents: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve documents",
        )

    return _with_total_count(response, page)


@router.get("/watch", response_model=List[FsNode])
async def list_watch_folder(
    response: Response,
    folder: Optional[str] = None,
    query_service: QueryService = Depends(get_query_service),
) -> List[FsNode]:
    """
    List a watch folder and everything below it, ordered by full path.

    - **folder**: Folder path, matched on whole path segments
    """
    try:
        page = await query_service.list_by_subtree(folder)
    except MissingParameterError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreUnavailableError as e:
        logger.error(f"Failed to retrieve documents under {folder}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve documents",
        )

    return _with_total_count(response, page)
