import io
import logging
import zipfile

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def logger():
    return logging.getLogger("comicshrink.tests")


def noise_image(width, height, seed=0, mode="RGB"):
    rng = np.random.default_rng(seed)
    if mode == "L":
        data = rng.integers(0, 256, (height, width), dtype=np.uint8)
    else:
        data = rng.integers(0, 256, (height, width, 3), dtype=np.uint8)
    return Image.fromarray(data)


def save_image(path, width=60, height=90, seed=0, fmt=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    noise_image(width, height, seed).save(path, fmt)
    return path


def jpeg_bytes(width=16, height=24, seed=0):
    buffer = io.BytesIO()
    noise_image(width, height, seed).save(buffer, "JPEG")
    return buffer.getvalue()


def make_zip(path, entries):
    """Write a zip file from a {name: bytes} mapping."""
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def read_zip(path):
    with zipfile.ZipFile(path) as zf:
        return {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}


def build_pdf(path, pages):
    """Assemble a minimal PDF.

    pages is a list of pages, each a list of (dictionary entries, stream
    bytes) tuples describing image XObjects. A plain string is written
    into the /XObject dictionary as is.
    """
    objects = {}
    next_id = 3
    page_ids = []
    for images in pages:
        page_id = next_id
        next_id += 1
        refs = []
        for n, image in enumerate(images):
            if isinstance(image, str):
                # A bare value stands in for a broken resource entry
                refs.append(f"/Im{n} {image}")
                continue
            entries, data = image
            image_id = next_id
            next_id += 1
            objects[image_id] = (
                b"<< /Type /XObject /Subtype /Image " + entries.encode("ascii")
                + b" /Length %d >>\nstream\n" % len(data) + data + b"\nendstream"
            )
            refs.append(f"/Im{n} {image_id} 0 R")
        objects[page_id] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /XObject << {' '.join(refs)} >> >> >>"
        ).encode("ascii")
        page_ids.append(page_id)

    objects[1] = b"<< /Type /Catalog /Pages 2 0 R >>"
    kids = " ".join(f"{i} 0 R" for i in page_ids)
    objects[2] = f"<< /Type /Pages /Kids [{kids}] /Count {len(page_ids)} >>".encode("ascii")

    out = bytearray(b"%PDF-1.4\n")
    offsets = {}
    for obj_id in sorted(objects):
        offsets[obj_id] = len(out)
        out += b"%d 0 obj\n" % obj_id + objects[obj_id] + b"\nendobj\n"

    xref_pos = len(out)
    size = max(objects) + 1
    out += b"xref\n0 %d\n" % size
    out += b"0000000000 65535 f \n"
    for obj_id in range(1, size):
        out += b"%010d 00000 n \n" % offsets[obj_id]
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_pos)

    path.write_bytes(bytes(out))
    return path


class RecordingProgress:
    """Progress sink that remembers every position it was given."""

    def __init__(self):
        self.positions = []

    def set_position(self, position):
        self.positions.append(position)
