import json
import logging
import uuid
from functools import lru_cache
from typing import Any, Dict, Optional

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from webstats.config import get_settings


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _container_client():
    settings = get_settings()
    if not settings.storage_account_name:
        raise RuntimeError("AZURE_STORAGE_ACCOUNT_NAME is required")
    if not settings.storage_account_key:
        raise RuntimeError("AZURE_STORAGE_ACCOUNT_KEY is required")
    account_url = f"https://{settings.storage_account_name}.blob.core.windows.net"
    service = BlobServiceClient(
        account_url=account_url, credential=settings.storage_account_key
    )
    client = service.get_container_client(settings.container)
    try:
        client.create_container()
    except ResourceExistsError:
        pass
    return client


def _document_path(collection: str, document_id: str) -> str:
    return f"{collection}/{document_id}.json"


def _blob_url(blob_name: str) -> str:
    settings = get_settings()
    if settings.storage_account_name:
        return (
            f"https://{settings.storage_account_name}.blob.core.windows.net/"
            f"{settings.container}/{blob_name}"
        )
    return f"{settings.container}/{blob_name}"


def new_document_id() -> str:
    return uuid.uuid4().hex


def create_document(
    collection: str, document_id: str, document: Dict[str, Any]
) -> Dict[str, str]:
    """Store ``document`` as ``<collection>/<document_id>.json``.

    Documents are write-once; storage errors propagate to the caller.
    """
    blob_name = _document_path(collection, document_id)
    data = json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )
    _container_client().upload_blob(
        name=blob_name,
        data=data,
        overwrite=False,
        content_settings=ContentSettings(content_type="application/json"),
    )
    logger.debug("Stored document %s", _blob_url(blob_name))
    return {"id": document_id}


def get_document(collection: str, document_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a stored document.

    Returns the decoded document, or ``None`` when it does not exist or
    cannot be retrieved.
    """

    blob_name = _document_path(collection, document_id)
    try:
        client = _container_client()
    except Exception:
        logger.exception("Unable to create Azure container client for download")
        return None

    blob_client = client.get_blob_client(blob_name)
    blob_url = getattr(blob_client, "url", _blob_url(blob_name))
    logger.debug("Downloading document from %s", blob_url)

    try:
        return json.loads(blob_client.download_blob().readall())
    except ResourceNotFoundError:
        logger.debug("Document %s does not exist", blob_url)
        return None
    except Exception:
        logger.exception("Failed to download document %s", blob_url)
        return None
