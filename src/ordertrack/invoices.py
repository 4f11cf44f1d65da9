"""Invoice file storage for ordertrack.

Orders only keep an InvoiceRef; the bytes live on disk under the upload
directory and are served back by URL.
"""

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .config import INVOICE_CONTENT_TYPES, INVOICES_DIR, MAX_INVOICE_BYTES, UPLOADS_DIR
from .errors import InvalidInvoiceError, InvoiceStorageError
from .models import InvoiceRef

logger = logging.getLogger(__name__)

URL_PREFIX = f"/{UPLOADS_DIR}/{INVOICES_DIR}/"


@dataclass
class InvoiceUpload:
    """An uploaded file as received from the transport layer."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)


class InvoiceStorage:
    """Stores uploaded invoices on the local filesystem."""

    def __init__(self, upload_dir: Path, max_bytes: int = MAX_INVOICE_BYTES):
        """
        Initialize InvoiceStorage.

        Args:
            upload_dir: Root upload directory; invoices go in its 'invoices' subdirectory.
            max_bytes: Largest accepted upload.
        """
        self.upload_dir = upload_dir
        self.invoices_dir = upload_dir / INVOICES_DIR
        self.max_bytes = max_bytes

    def validate(self, upload: InvoiceUpload) -> None:
        """
        Check content type and size.

        Raises:
            InvalidInvoiceError: If the upload isn't an acceptable PDF.
        """
        if not upload.filename:
            raise InvalidInvoiceError(upload.filename, "missing file name")
        if upload.content_type not in INVOICE_CONTENT_TYPES:
            raise InvalidInvoiceError(upload.filename, "only PDF files are allowed")
        if upload.size > self.max_bytes:
            raise InvalidInvoiceError(
                upload.filename, f"file exceeds {self.max_bytes // (1024 * 1024)}MB limit"
            )

    def _stored_name(self, upload: InvoiceUpload) -> str:
        suffix = PurePosixPath(upload.filename).suffix.lower() or ".pdf"
        unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"invoice-{unique}{suffix}"

    def save(self, upload: InvoiceUpload) -> InvoiceRef:
        """
        Validate and write an upload, returning a reference to it.

        Raises:
            InvalidInvoiceError: If the upload is rejected.
            InvoiceStorageError: If the file can't be written.
        """
        self.validate(upload)
        stored_name = self._stored_name(upload)
        try:
            self.invoices_dir.mkdir(parents=True, exist_ok=True)
            (self.invoices_dir / stored_name).write_bytes(upload.content)
        except OSError as e:
            raise InvoiceStorageError(upload.filename, str(e))

        logger.info("Stored invoice %s as %s", upload.filename, stored_name)
        return InvoiceRef(file_name=upload.filename, url=URL_PREFIX + stored_name)

    def resolve(self, url: str) -> Path:
        """
        Map a stored invoice URL back to its file.

        Raises:
            InvoiceStorageError: If the URL isn't one of ours or the file is gone.
        """
        if not url.startswith(URL_PREFIX):
            raise InvoiceStorageError(url, "not a stored invoice URL")

        name = url[len(URL_PREFIX):]
        if not name or "/" in name or name in (".", ".."):
            raise InvoiceStorageError(url, "invalid invoice path")

        path = self.invoices_dir / name
        if not path.is_file():
            raise InvoiceStorageError(url, "invoice file not found on server")
        return path
