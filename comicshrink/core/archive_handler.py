#!/usr/bin/env python3
"""
Archive handling for CBZ/CBR files.
Extraction (with RAR -> ZIP fallback) and CBZ creation.
"""

import os
import shutil
import zipfile
import zlib
import tempfile
from pathlib import Path

import rarfile

from ..errors import ExtractionError, RepackageError


class ArchiveHandler:
    """Centralized archive handling for comic book formats."""

    @staticmethod
    def _safe_target(dest, member_name, archive_label):
        """Resolve an entry name below dest, rejecting absolute or escaping paths."""
        name = Path(member_name)
        # Disallow absolute paths
        if name.is_absolute():
            raise ExtractionError(f"Unsafe absolute path in {archive_label} entry: {member_name}")
        target = (dest / name).resolve()
        # Disallow traversal outside dest
        if os.path.commonpath([str(dest), str(target)]) != str(dest):
            raise ExtractionError(f"Path traversal detected in {archive_label} entry: {member_name}")
        return target

    @classmethod
    def extract_zip(cls, archive_path, extract_dir, logger=None):
        """Extract ZIP/CBZ archive with path validation."""
        if logger:
            logger.debug(f"Extracting {archive_path} as ZIP")
        try:
            with zipfile.ZipFile(archive_path, 'r') as z:
                dest = Path(extract_dir).resolve()
                for m in z.infolist():
                    target = cls._safe_target(dest, m.filename, "ZIP")
                    if m.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                    else:
                        target.parent.mkdir(parents=True, exist_ok=True)
                        with z.open(m, 'r') as src, open(target, 'wb') as dst:
                            shutil.copyfileobj(src, dst)
        except ExtractionError:
            raise
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, NotImplementedError,
                OSError, RuntimeError, EOFError) as e:
            raise ExtractionError(f"Failed to extract {Path(archive_path).name} as ZIP: {e}") from e

    @classmethod
    def extract_rar(cls, archive_path, extract_dir, logger=None):
        """Extract RAR/CBR archive with path validation."""
        if logger:
            logger.debug(f"Extracting {archive_path} as RAR")
        try:
            dest = Path(extract_dir).resolve()
            with rarfile.RarFile(archive_path) as rf:
                for m in rf.infolist():
                    target = cls._safe_target(dest, m.filename, "RAR")
                    if m.isdir():
                        target.mkdir(parents=True, exist_ok=True)
                    else:
                        target.parent.mkdir(parents=True, exist_ok=True)
                        with rf.open(m) as src, open(target, 'wb') as dst:
                            shutil.copyfileobj(src, dst)
        except ExtractionError:
            raise
        except (rarfile.Error, OSError, EOFError) as e:
            raise ExtractionError(f"Failed to extract {Path(archive_path).name} as RAR: {e}") from e

    @classmethod
    def extract_with_fallback(cls, archive_path, extract_dir, logger=None):
        """Extract a CBR file, retrying as ZIP when RAR extraction fails.

        Some .cbr files are really ZIP archives. Partial RAR output is
        discarded before the retry.
        """
        try:
            cls.extract_rar(archive_path, extract_dir, logger)
            return
        except ExtractionError as rar_error:
            if logger:
                logger.debug(f"RAR extraction failed for {Path(archive_path).name}, trying ZIP: {rar_error}")
            cls.clear_directory(extract_dir)
            try:
                cls.extract_zip(archive_path, extract_dir, logger)
            except ExtractionError as zip_error:
                raise ExtractionError(
                    f"Failed to extract {Path(archive_path).name} as both RAR and ZIP "
                    f"(rar: {rar_error}; zip: {zip_error})"
                ) from zip_error
        if logger:
            logger.info(f"{Path(archive_path).name} is a ZIP archive despite its extension")

    @staticmethod
    def clear_directory(directory):
        """Remove everything inside directory, keeping the directory itself."""
        for child in Path(directory).iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()

    @classmethod
    def create_cbz(cls, source_dir, output_file, logger=None, compresslevel=9):
        """Create CBZ archive from directory with deflate compression.

        The archive is written next to output_file under a temporary name
        and moved into place only once complete. Empty directories get
        their own entry; other directories are implied by their files.
        """
        source_dir = Path(source_dir)
        output_file = Path(output_file)
        if logger:
            logger.info(f"Creating CBZ file: {output_file} (compression level: {compresslevel})")

        # Collect all files and sort them for proper ordering
        all_files = []
        for root, dirs, files in os.walk(source_dir):
            root_path = Path(root)
            if not dirs and not files and root_path != source_dir:
                all_files.append((root_path, root_path.relative_to(source_dir)))
            for file in files:
                file_path = root_path / file
                if file_path.is_file():
                    all_files.append((file_path, file_path.relative_to(source_dir)))
        all_files.sort(key=lambda x: x[1].as_posix())

        if not all_files and logger:
            logger.warning(f"No files to archive for {output_file}, writing an empty CBZ")

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{output_file.stem}.", suffix=".part", dir=output_file.parent
            )
            os.close(fd)
        except OSError as e:
            raise RepackageError(f"Cannot create output file {output_file}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with zipfile.ZipFile(tmp_path, 'w', zipfile.ZIP_DEFLATED, compresslevel=compresslevel) as zipf:
                for file_path, rel_path in all_files:
                    # ZipFile.write adds the trailing slash for directories
                    zipf.write(file_path, rel_path.as_posix())
            # mkstemp creates 0600 files
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, output_file)
        except (OSError, ValueError, zipfile.LargeZipFile) as e:
            tmp_path.unlink(missing_ok=True)
            raise RepackageError(f"Failed to write {output_file}: {e}") from e

        if logger:
            logger.debug(f"Added {len(all_files)} files to {output_file}")
