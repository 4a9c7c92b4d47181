"""Core extraction and packaging components for comicshrink."""
from .archive_handler import ArchiveHandler
from .filesystem_utils import FileSystemUtils
from .format_detector import ComicContainer, ComicKind, FormatDetector, classify, find_comic_files
from .pdf_extractor import EmbeddedImageStream, PdfImageExtractor, extract_pdf_images

__all__ = [
    "ArchiveHandler",
    "FileSystemUtils",
    "ComicContainer",
    "ComicKind",
    "FormatDetector",
    "classify",
    "find_comic_files",
    "EmbeddedImageStream",
    "PdfImageExtractor",
    "extract_pdf_images",
]
