"""
Embedding maintenance routes.
"""

from fastapi import APIRouter

from medassist.utils.logging import new_correlation_id

from ..dependencies import get_container
from ..error_formatting import error_response

router = APIRouter(prefix="/api/embeddings", tags=["embeddings"])


@router.post("/backfill")
async def backfill_embeddings():
    """
    Embed every document that has no embedding yet.

    One document failing does not stop the others; the response lists
    each failure.
    """
    new_correlation_id()

    try:
        backfill = get_container().embedding_backfill
        if backfill is None:
            raise RuntimeError("Embedding backfill not available")
        report = await backfill.run()
    except Exception as e:
        return error_response(e, event="embedding_backfill_failed")

    if report.total == 0:
        message = "All documents already have embeddings"
    else:
        message = (
            f"Generated embeddings for {report.succeeded} of {report.total} documents"
        )

    return {"message": message, **report.to_dict()}
