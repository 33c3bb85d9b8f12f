"""
QR code labels for inventory books.

Generation is best-effort: it runs after the inventory change is committed
and any failure is logged and swallowed so the add-book call still succeeds.
"""
import logging
from typing import Optional

import qrcode
from PIL import Image

from domain.models import Book
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

QR_IMAGE_SIZE = 256


def qr_filename(book: Book) -> str:
    return f"qr_{book.library_id}_{book.isbn}.png"


def qr_content(book: Book) -> str:
    return (
        f"Title: {book.title}\n"
        f"Author: {book.authors}\n"
        f"ISBN: {book.isbn}\n"
        f"Version: {book.version}"
    )


def render_qr_image(content: str, size: int = QR_IMAGE_SIZE) -> Image.Image:
    """Encode content as a square black-on-white QR image of `size` pixels."""
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=4)
    qr.add_data(content)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white").get_image()
    return image.convert("RGB").resize((size, size), Image.NEAREST)


class QRCodeService:
    def __init__(self, storage: FileStorage, enabled: bool = True, size: int = QR_IMAGE_SIZE):
        self.storage = storage
        self.enabled = enabled
        self.size = size

    def generate_for_book(self, book: Book) -> Optional[str]:
        """Write the QR label for a book. Returns the relative path or None."""
        if not self.enabled:
            return None
        try:
            image = render_qr_image(qr_content(book), self.size)
            return self.storage.save_image(image, qr_filename(book))
        except Exception as e:
            logger.warning("QR code generation failed for isbn=%s: %s", book.isbn, e)
            return None

    def remove_for_book(self, book: Book) -> None:
        relative = f"qr_codes/{qr_filename(book)}"
        try:
            self.storage.delete_file(relative)
        except OSError as e:
            logger.warning("Could not delete QR code %s: %s", relative, e)
