import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings


def image(name="photo.png", content=b"\x89PNG\r\n\x1a\nfake"):
    return SimpleUploadedFile(name, content, content_type="image/png")


def pdf(name="report.pdf", content=b"%PDF-1.4 fake"):
    return SimpleUploadedFile(name, content, content_type="application/pdf")


class TempMediaMixin:
    """Point MEDIA_ROOT at a throwaway directory for each test."""

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp(prefix="collab-media-")
        media = override_settings(MEDIA_ROOT=self.media_root)
        media.enable()
        self.addCleanup(media.disable)
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)
