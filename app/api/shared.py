from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.api.documents import file_response
from app.schemas.document import SharedDocumentRead
from app.services.document_share import document_shares

router = APIRouter(prefix="/shared", tags=["shared"])


@router.get("/{token}", response_model=SharedDocumentRead)
def open_shared_document(
    token: str,
    share_password: str | None = Header(default=None, alias="X-Share-Password"),
    db: Session = Depends(get_db),
):
    share, document = document_shares.resolve(db, token, share_password)
    return {
        "permission": share.permission,
        "expires_at": share.expires_at,
        "document": document,
    }


@router.get("/{token}/download")
def download_shared_document(
    token: str,
    share_password: str | None = Header(default=None, alias="X-Share-Password"),
    db: Session = Depends(get_db),
):
    _, document = document_shares.resolve(
        db, token, share_password, require_download=True
    )
    return file_response(document)
