# app/utils/response.py

from typing import TypeVar, Generic, Optional, Dict, Any

from fastapi import Response
from pydantic import BaseModel

T = TypeVar("T")


def success_response(message: str, data: Optional[T] = None) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
    }


def pdf_response(content: bytes, file_name: str, page_count: int) -> Response:
    """Raw PDF bytes as a download; these bypass the JSON envelope."""
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{file_name}"',
            "X-Page-Count": str(page_count),
        },
    )


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None
