"""
Local media storage for generated files.

Layout under the media root:
- qr_codes/  PNG labels for inventory books

Paths handed back to callers are relative to the media root, which is also
what the API serves under /media.
"""
from pathlib import Path

from PIL import Image

QR_CODES_DIR = "qr_codes"


class FileStorage:
    def __init__(self, media_root: str = "media"):
        self.media_root = Path(media_root)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def _subdir(self, name: str) -> Path:
        directory = self.media_root / name
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def get_qr_codes_dir(self) -> Path:
        return self._subdir(QR_CODES_DIR)

    def save_image(self, image: Image.Image, filename: str) -> str:
        """
        Write a QR label as PNG, replacing any file with the same name.

        Returns:
            Path of the PNG relative to the media root
        """
        target = self.get_qr_codes_dir() / filename
        image.save(target, format="PNG")
        return target.relative_to(self.media_root).as_posix()

    def get_absolute_path(self, relative_path: str) -> Path:
        return self.media_root / relative_path

    def file_exists(self, relative_path: str) -> bool:
        return self.get_absolute_path(relative_path).is_file()

    def delete_file(self, relative_path: str) -> bool:
        """Remove a stored file. False when there was nothing to remove."""
        target = self.get_absolute_path(relative_path)
        if not target.is_file():
            return False
        target.unlink()
        return True
