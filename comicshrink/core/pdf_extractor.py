#!/usr/bin/env python3
"""
Page image extraction from PDF comics.

Images are read straight from each page's /XObject resources. JPEG
streams are copied verbatim; Flate streams (predictors included) and
unfiltered streams are decoded into raw pixels and saved as PNG. Anything else is skipped.
"""

import enum
import logging
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

import numpy as np
from PIL import Image
from pypdf import PdfReader
from pypdf.errors import PyPdfError
from pypdf.filters import FlateDecode
from pypdf.generic import ArrayObject, DictionaryObject

from ..errors import ExtractionError


class ImageFilter(enum.Enum):
    DCT = "dct"
    FLATE = "flate"
    FAX = "fax"
    RAW = "raw"
    OTHER = "other"


FILTER_BY_NAME = {
    '/DCTDecode': ImageFilter.DCT,
    '/DCT': ImageFilter.DCT,
    '/FlateDecode': ImageFilter.FLATE,
    '/Fl': ImageFilter.FLATE,
    '/CCITTFaxDecode': ImageFilter.FAX,
    '/CCF': ImageFilter.FAX,
}


@dataclass
class EmbeddedImageStream:
    """One image XObject as found in a page's resource dictionary."""
    width: int
    height: int
    bits_per_component: int
    color_space: str
    components: Optional[int]
    filter_name: str
    raw_data: bytes
    decode_parms: Optional[DictionaryObject] = None

    @property
    def image_filter(self):
        if not self.filter_name:
            return ImageFilter.RAW
        return FILTER_BY_NAME.get(self.filter_name, ImageFilter.OTHER)


class UnsupportedImage(Exception):
    """An embedded image that cannot be turned into a raster file."""


def _value(obj, key, default=None):
    """Dictionary lookup that follows indirect references."""
    if not isinstance(obj, DictionaryObject):
        return default
    value = obj.get(key)
    if value is None:
        return default
    return value.get_object()


def cmyk_to_rgb(data):
    """Convert packed 8-bit CMYK bytes to an (N, 3) uint8 RGB array.

    R = (1 - C)(1 - K), G = (1 - M)(1 - K), B = (1 - Y)(1 - K)
    on components normalized to [0, 1].
    """
    cmyk = np.frombuffer(data, dtype=np.uint8).reshape(-1, 4).astype(np.float64) / 255.0
    c, m, y, k = cmyk.T
    k_inv = 1.0 - k
    rgb = np.stack([(1.0 - c) * k_inv, (1.0 - m) * k_inv, (1.0 - y) * k_inv], axis=1)
    return np.rint(rgb * 255.0).astype(np.uint8)


def pixels_to_image(stream, data):
    """Build a PIL image from decoded pixel bytes of an embedded stream."""
    if stream.bits_per_component != 8 or stream.components not in (1, 3, 4):
        raise UnsupportedImage(
            f"unsupported color space {stream.color_space} "
            f"with {stream.bits_per_component} bits per component"
        )
    if stream.width <= 0 or stream.height <= 0:
        raise UnsupportedImage(f"invalid dimensions {stream.width}x{stream.height}")

    size = (stream.width, stream.height)
    expected = stream.width * stream.height * stream.components
    if len(data) < expected:
        raise UnsupportedImage(f"pixel data too short ({len(data)} of {expected} bytes)")
    data = data[:expected]

    if stream.components == 1:
        return Image.frombytes('L', size, data)
    if stream.components == 3:
        return Image.frombytes('RGB', size, data)
    rgb = cmyk_to_rgb(data).reshape(stream.height, stream.width, 3)
    return Image.fromarray(rgb)


class PdfImageExtractor:
    """Writes every embedded page image of a PDF into a directory."""

    COMPONENTS_BY_COLOR_SPACE: ClassVar[dict[str, int]] = {
        '/DeviceGray': 1,
        '/CalGray': 1,
        '/DeviceRGB': 3,
        '/CalRGB': 3,
        '/DeviceCMYK': 4,
    }

    def __init__(self, logger=None):
        self.logger = logger

    def _log(self, level, message):
        if self.logger:
            self.logger.log(level, message)

    def extract(self, pdf_path, extract_dir):
        """Extract all page images. Returns the number of files written.

        Raises:
            ExtractionError: if the PDF cannot be read or holds no usable image
        """
        pdf_path = Path(pdf_path)
        extract_dir = Path(extract_dir)
        try:
            reader = PdfReader(pdf_path)
            pages = list(reader.pages)
        except (PyPdfError, OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise ExtractionError(f"Failed to open PDF {pdf_path.name}: {e}") from e

        index = 1
        written = 0
        for page_number, page in enumerate(pages, 1):
            try:
                streams = list(self.iter_page_images(page))
            except (PyPdfError, KeyError, TypeError, ValueError, AttributeError) as e:
                self._log(logging.WARNING, f"Skipping unreadable resources on page {page_number} of {pdf_path.name}: {e}")
                continue

            for stream in streams:
                stem = f"{index:04d}"
                index += 1
                try:
                    output = self.write_image(stream, extract_dir, stem)
                except UnsupportedImage as e:
                    self._log(logging.WARNING, f"Skipping image {stem} on page {page_number}: {e}")
                    continue
                written += 1
                self._log(logging.DEBUG, f"Extracted page {page_number} image to {output.name}")

        if written == 0:
            raise ExtractionError(f"{pdf_path.name} is not an image-bearing document")

        self._log(logging.INFO, f"Extracted {written} images from {len(pages)} pages of {pdf_path.name}")
        return written

    def iter_page_images(self, page):
        """Yield an EmbeddedImageStream for each image XObject on a page."""
        resources = _value(page, '/Resources')
        xobjects = _value(resources, '/XObject')
        if not isinstance(xobjects, DictionaryObject):
            return

        for name in xobjects:
            obj = xobjects[name].get_object()
            # Malformed entries such as `/Im0 42` are not images
            if not isinstance(obj, DictionaryObject):
                continue
            if _value(obj, '/Subtype') != '/Image':
                continue
            yield self.describe_stream(obj)

    def describe_stream(self, obj):
        filters = _value(obj, '/Filter')
        if isinstance(filters, ArrayObject):
            names = [str(f.get_object()) for f in filters]
        elif filters is None:
            names = []
        else:
            names = [str(filters)]
        # Filter chains are reported as one name and land in the OTHER arm
        filter_name = names[0] if len(names) == 1 else ' '.join(names)

        color_space, components = self.resolve_color_space(_value(obj, '/ColorSpace'))

        return EmbeddedImageStream(
            width=int(_value(obj, '/Width', 0)),
            height=int(_value(obj, '/Height', 0)),
            bits_per_component=int(_value(obj, '/BitsPerComponent', 8)),
            color_space=color_space,
            components=components,
            filter_name=filter_name,
            # Encoded stream bytes, before any filter is applied
            raw_data=getattr(obj, '_data', None) or b'',
            decode_parms=self.resolve_decode_parms(_value(obj, '/DecodeParms')),
        )

    @classmethod
    def resolve_color_space(cls, color_space):
        """Return (name, component count) for a /ColorSpace entry.

        The count is None for color spaces that are not plain device
        color (Indexed, Separation, DeviceN, Pattern...).
        """
        if color_space is None:
            return 'none', None

        if isinstance(color_space, ArrayObject):
            if not color_space:
                return 'none', None
            family = str(color_space[0].get_object())
            if family == '/ICCBased' and len(color_space) > 1:
                n = _value(color_space[1].get_object(), '/N')
                return family, int(n) if n is not None else None
            return family, cls.COMPONENTS_BY_COLOR_SPACE.get(family)

        name = str(color_space)
        return name, cls.COMPONENTS_BY_COLOR_SPACE.get(name)

    @staticmethod
    def resolve_decode_parms(decode_parms):
        """Return the Flate parameter dictionary, or None."""
        if isinstance(decode_parms, ArrayObject):
            decode_parms = decode_parms[0].get_object() if decode_parms else None
        if not isinstance(decode_parms, DictionaryObject):
            return None
        return decode_parms

    def write_image(self, stream, extract_dir, stem):
        """Decode one stream according to its filter and write it out."""
        image_filter = stream.image_filter

        if image_filter is ImageFilter.DCT:
            if not stream.raw_data:
                raise UnsupportedImage("empty JPEG stream")
            output = extract_dir / f"{stem}.jpg"
            output.write_bytes(stream.raw_data)
            return output

        if image_filter is ImageFilter.FLATE:
            try:
                # Undoes PNG/TIFF predictors described by /DecodeParms
                data = FlateDecode.decode(stream.raw_data, stream.decode_parms)
            except (PyPdfError, zlib.error, ValueError, TypeError) as e:
                raise UnsupportedImage(f"corrupt Flate stream: {e}") from e
        elif image_filter is ImageFilter.RAW:
            data = stream.raw_data
        elif image_filter is ImageFilter.FAX:
            raise UnsupportedImage("CCITT fax images are not supported")
        else:
            raise UnsupportedImage(f"unsupported filter {stream.filter_name}")

        img = pixels_to_image(stream, data)
        output = extract_dir / f"{stem}.png"
        img.save(output, 'PNG')
        return output


def extract_pdf_images(pdf_path, extract_dir, logger=None):
    """Extract every embedded page image of a PDF into extract_dir."""
    return PdfImageExtractor(logger).extract(pdf_path, extract_dir)
