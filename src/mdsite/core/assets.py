"""Shared asset store: resolution of local references and atomic, de-duplicated publishing"""

import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote, urlsplit

from mdsite.core.utils.hashing import sha256_file


logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"
HASH_LENGTH = 32


def is_external(reference: str) -> bool:
    """True for fully-qualified URLs, protocol-relative URLs, data URIs, mailto and fragments."""
    if not reference or reference.startswith(("#", "//")):
        return True
    parts = urlsplit(reference)
    return bool(parts.scheme or parts.netloc)


def reference_path(reference: str) -> str:
    """Return the file part of a local reference, without query, fragment or URL escapes."""
    return unquote(urlsplit(reference).path)


def resolve_reference(reference: str, document_path: Path, roots: Iterable[Path]) -> Optional[Path]:
    """Return the file a local reference points at, or None.

    Relative references are tried against the document's directory first, then
    against every root. A leading '/' makes the reference root-relative.
    """
    rel = reference_path(reference)
    if not rel:
        return None
    candidates = []
    if not rel.startswith("/"):
        candidates.append(document_path.parent / rel)
    candidates.extend(Path(root) / rel.lstrip("/") for root in roots)
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    return None


class AssetStore:
    """Content-addressed output area for published assets.

    One store is created per build and shared by every worker. A source file is
    copied to <output>/<destination>/<hash>/<name> at most once; concurrent publishers of the
    same target wait on a per-target lock. Copies go through a temporary file
    and os.replace so a target is either complete or absent.
    """

    def __init__(self, output_dir: Path, destination_dir: str = "static", url_prefix: str = "/"):
        self.output_dir = Path(output_dir)
        self.destination_dir = destination_dir.strip("/")
        self.url_prefix = url_prefix.rstrip("/") + "/"
        self._lock = threading.Lock()
        self._target_locks: dict[Path, threading.Lock] = {}
        self._published: dict[tuple[Path, str], str] = {}
        self._urls: set[str] = set()
        self.copies = 0

    @property
    def root(self) -> Path:
        return self.output_dir / self.destination_dir

    def is_published(self, reference: str) -> bool:
        """True if reference is a URL this store has handed out."""
        with self._lock:
            return reference_path(reference) in self._urls

    def __enter__(self) -> "AssetStore":
        self.root.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Remove leftovers of interrupted copies."""
        if self.output_dir.exists():
            for part in self.output_dir.rglob(f"*{PART_SUFFIX}"):
                part.unlink(missing_ok=True)

    def _target_lock(self, target: Path) -> threading.Lock:
        with self._lock:
            return self._target_locks.setdefault(target, threading.Lock())

    def target_for(self, source: Path, destination: str = None) -> Path:
        return self.output_dir / (destination or self.destination_dir) / sha256_file(source)[:HASH_LENGTH] / source.name

    def url_for(self, target: Path) -> str:
        return self.url_prefix + target.relative_to(self.output_dir).as_posix()

    def publish(self, source: Path, destination: str = None) -> str:
        """Copy source into the store once and return its public URL."""
        source = Path(source).resolve()
        destination = (destination or self.destination_dir).strip("/")
        key = (source, destination)
        with self._lock:
            if key in self._published:
                return self._published[key]

        target = self.target_for(source, destination)
        with self._target_lock(target):
            if not target.exists():
                _atomic_copy(source, target)
                with self._lock:
                    self.copies += 1
                logger.debug("Published %s -> %s", source, target)
        url = self.url_for(target)
        with self._lock:
            self._published[key] = url
            self._urls.add(url)
        return url

    def write_text(self, relative: str, content: str) -> Path:
        """Atomically write a build artifact (record, feed, manifest) under output_dir."""
        target = self.output_dir / relative
        with self._target_lock(target):
            _atomic_write(target, content.encode("utf-8"))
        return target


def _atomic_copy(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=PART_SUFFIX)
    os.close(fd)
    try:
        shutil.copyfile(source, tmp)
        os.replace(tmp, target)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def _atomic_write(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=PART_SUFFIX)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, target)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
