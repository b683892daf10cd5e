# storeadmin/images.py
"""
Ordered image lists for the product form.

Every transition takes a tuple of image references (URLs or data: URLs) and
returns a new tuple; nothing here mutates its input.
"""
import asyncio
import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

from .errors import ImageError

Images = Tuple[str, ...]
PathLike = Union[str, Path]

ONLY_IMAGES = "Only image files are allowed."
UNREADABLE_BATCH = "Unable to process one or more files."
UNREADABLE_REPLACEMENT = "Unable to replace image."


def _valid_index(images: Sequence[str], index: int) -> bool:
    return 0 <= index < len(images)


def merge_unique(existing: Iterable[str], new: Iterable[str]) -> Images:
    existing = tuple(existing)
    seen = set(existing)
    added = []
    for image in new:
        if image not in seen:
            seen.add(image)
            added.append(image)
    return existing + tuple(added)


def add_url(images: Sequence[str], raw: str) -> Images:
    url = (raw or "").strip()
    if not url:
        raise ImageError("Enter an image URL.")
    if url in images:
        return tuple(images)
    return tuple(images) + (url,)


def remove_at(images: Sequence[str], index: int) -> Images:
    if not _valid_index(images, index):
        return tuple(images)
    return tuple(images[:index]) + tuple(images[index + 1:])


def reorder(images: Sequence[str], source: int, target: int) -> Images:
    if source == target or not _valid_index(images, source) or not _valid_index(images, target):
        return tuple(images)
    items = list(images)
    moved = items.pop(source)
    items.insert(target, moved)
    return tuple(items)


def normalize(images: Iterable[object]) -> Images:
    out = []
    seen = set()
    for image in images:
        value = image.strip() if isinstance(image, str) else ""
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return tuple(out)


def primary_image(images: Sequence[str]) -> str:
    return images[0] if images else ""


# ---------------------------
# Local files
# ---------------------------
def declared_type(path: PathLike) -> Optional[str]:
    mime, _ = mimetypes.guess_type(str(path))
    return mime


def is_image(path: PathLike) -> bool:
    mime = declared_type(path)
    return bool(mime and mime.startswith("image/"))


def read_as_data_url(path: PathLike) -> str:
    path = Path(path)
    mime = declared_type(path) or "application/octet-stream"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _check_batch(paths: Sequence[PathLike]) -> None:
    if any(not is_image(p) for p in paths):
        raise ImageError(ONLY_IMAGES)


def ingest_files(images: Sequence[str], paths: Sequence[PathLike]) -> Images:
    """Read a whole selection into data URLs and append the new ones. All or nothing."""
    if not paths:
        return tuple(images)
    _check_batch(paths)
    try:
        uploaded = [read_as_data_url(p) for p in paths]
    except OSError as e:
        raise ImageError(UNREADABLE_BATCH) from e
    return merge_unique(images, uploaded)


async def ingest_files_async(images: Sequence[str], paths: Sequence[PathLike]) -> Images:
    if not paths:
        return tuple(images)
    _check_batch(paths)
    try:
        # gather keeps results in selection order whatever order the reads finish in
        uploaded = await asyncio.gather(*(asyncio.to_thread(read_as_data_url, p) for p in paths))
    except OSError as e:
        raise ImageError(UNREADABLE_BATCH) from e
    return merge_unique(images, uploaded)


def replace_at(images: Sequence[str], index: int, path: Optional[PathLike]) -> Images:
    if path is None or not _valid_index(images, index):
        return tuple(images)
    if not is_image(path):
        raise ImageError(ONLY_IMAGES)
    try:
        replacement = read_as_data_url(path)
    except OSError as e:
        raise ImageError(UNREADABLE_REPLACEMENT) from e
    items = list(images)
    items[index] = replacement
    return tuple(items)


@dataclass(frozen=True)
class DragState:
    source: Optional[int] = None

    def start(self, index: int) -> "DragState":
        return DragState(source=index)

    def drop(self, images: Sequence[str], target: int) -> Tuple[Images, "DragState"]:
        if self.source is None:
            return tuple(images), self
        return reorder(images, self.source, target), DragState()

    def end(self) -> "DragState":
        return DragState()
