"""
Directory listing cache.

Remembers the files and folders found under a (root, pattern, case
sensitivity) key so repeated runs can skip walking large trees. The cache
is an optimization only: roots that a sync writes to are marked, and
their entries are dropped once the sync completes without failures.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from contentsync.core.models import TreeListing
from contentsync.core.paths import trim_separator


# (normalized root, pattern, case sensitive)
CacheKey = tuple[str, str, bool]


def normalize_root(root: str | os.PathLike) -> str:
    """Normalize a root directory for use in a cache key."""
    return os.path.normcase(trim_separator(os.path.abspath(os.fspath(root))))


def _sha1(text: str) -> str:
    return hashlib.sha1(text.encode('utf-8')).hexdigest()


class ListingCache:
    """
    Base listing cache.

    Subclasses provide storage by implementing `_load`, `_store`,
    `_remove_root` and `_remove_all`. Writers are serialized by a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._written_roots: set[str] = set()

    @staticmethod
    def default_directory() -> Path:
        """Get the default on-disk cache directory."""
        if os.name == 'nt':
            local_app_data = os.environ.get('LOCALAPPDATA', os.path.expanduser('~'))
            return Path(local_app_data) / 'ContentSync' / 'cache'
        cache_home = os.environ.get('XDG_CACHE_HOME',
                                    os.path.expanduser('~/.cache'))
        return Path(cache_home) / 'contentsync'

    @staticmethod
    def make_key(root: str | os.PathLike, pattern: str, case_sensitive: bool = False) -> CacheKey:
        return (normalize_root(root), pattern, bool(case_sensitive))

    def try_read(
        self,
        root: str | os.PathLike,
        pattern: str,
        case_sensitive: bool = False
    ) -> Optional[TreeListing]:
        """Return the cached listing for the key, or None."""
        key = self.make_key(root, pattern, case_sensitive)
        listing = self._load(key)
        if listing is not None:
            logging.debug(f"ListingCache - Hit for {key[0]} ({pattern})")
        return listing

    def write(
        self,
        root: str | os.PathLike,
        pattern: str,
        listing: TreeListing,
        case_sensitive: bool = False
    ) -> None:
        """Store a listing for the key, replacing any previous one."""
        key = self.make_key(root, pattern, case_sensitive)
        with self._lock:
            self._store(key, listing)
        logging.debug(f"ListingCache - Stored {len(listing.files)} files for {key[0]} ({pattern})")

    def mark_written(self, root: str | os.PathLike) -> None:
        """Record that a sync is about to modify `root`."""
        with self._lock:
            self._written_roots.add(normalize_root(root))
            self._save_written_roots()

    def clear_written_entries(self) -> int:
        """
        Drop entries for every root marked as written.

        Returns the number of entries removed.
        """
        with self._lock:
            removed = sum(self._remove_root(root) for root in self._written_roots)
            self._written_roots.clear()
            self._save_written_roots()
        if removed:
            logging.debug(f"ListingCache - Cleared {removed} written entries")
        return removed

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._remove_all()
            self._written_roots.clear()
            self._save_written_roots()

    @property
    def written_roots(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._written_roots)

    def __contains__(self, key: object) -> bool:
        """Accepts (root, pattern) or (root, pattern, case_sensitive)."""
        if not isinstance(key, tuple) or len(key) not in (2, 3):
            return False
        return self._load(self.make_key(*key)) is not None

    # Storage hooks

    def _load(self, key: CacheKey) -> Optional[TreeListing]:
        raise NotImplementedError

    def _store(self, key: CacheKey, listing: TreeListing) -> None:
        raise NotImplementedError

    def _remove_root(self, root: str) -> int:
        """Drop every entry for a normalized root. Returns the count."""
        raise NotImplementedError

    def _remove_all(self) -> None:
        raise NotImplementedError

    def _save_written_roots(self) -> None:
        pass


class MemoryListingCache(ListingCache):
    """In-process cache; lives as long as the object."""

    def __init__(self):
        super().__init__()
        self._entries: dict[CacheKey, TreeListing] = {}

    def _load(self, key: CacheKey) -> Optional[TreeListing]:
        return self._entries.get(key)

    def _store(self, key: CacheKey, listing: TreeListing) -> None:
        self._entries[key] = listing

    def _remove_root(self, root: str) -> int:
        keys = [key for key in self._entries if key[0] == root]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def _remove_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class JsonListingCache(ListingCache):
    """
    Cache persisted as one JSON file per key.

    Entries live in one directory per root, named by the SHA-1 of the
    root, so dropping a root never reads other roots' entries. Each file
    repeats its key, and a file whose stored key does not match the
    lookup is ignored. Marked roots are kept in `written.json` so another
    process can clear them.
    """

    WRITTEN_FILE = 'written.json'

    def __init__(self, cache_dir: Optional[Path | str] = None):
        super().__init__()
        self.cache_dir = Path(cache_dir) if cache_dir else self.default_directory()
        self._written_roots = set(self._read_written_roots())

    def _root_dir(self, root: str) -> Path:
        return self.cache_dir / _sha1(root)

    def _entry_path(self, key: CacheKey) -> Path:
        root, pattern, case_sensitive = key
        name = _sha1(pattern + '\0' + ('1' if case_sensitive else '0'))
        return self._root_dir(root) / f"{name}.json"

    def _read_json(self, path: Path) -> Optional[dict]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logging.warning(f"JsonListingCache - Ignoring unreadable cache file {path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def _write_json(self, path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def _load(self, key: CacheKey) -> Optional[TreeListing]:
        data = self._read_json(self._entry_path(key))
        if data is None:
            return None
        if (data.get('root'), data.get('pattern'), data.get('case_sensitive')) != key:
            return None
        return TreeListing.from_dict(data)

    def _store(self, key: CacheKey, listing: TreeListing) -> None:
        data = {
            'root': key[0],
            'pattern': key[1],
            'case_sensitive': key[2],
            'created': datetime.now().isoformat(),
            **listing.to_dict(),
        }
        try:
            self._write_json(self._entry_path(key), data)
        except OSError as e:
            logging.warning(f"JsonListingCache - Could not write cache entry for {key[0]}: {e}")

    def _remove_dir(self, directory: Path) -> int:
        removed = 0
        try:
            for path in directory.glob('*.json'):
                path.unlink()
                removed += 1
            directory.rmdir()
        except FileNotFoundError:
            pass
        except OSError as e:
            logging.warning(f"JsonListingCache - Could not remove cache entries in {directory}: {e}")
        return removed

    def _remove_root(self, root: str) -> int:
        return self._remove_dir(self._root_dir(root))

    def _remove_all(self) -> None:
        if not self.cache_dir.is_dir():
            return
        for directory in self.cache_dir.iterdir():
            if directory.is_dir():
                self._remove_dir(directory)

    def _read_written_roots(self) -> list[str]:
        data = self._read_json(self.cache_dir / self.WRITTEN_FILE)
        if not data:
            return []
        return [r for r in data.get('roots', []) if isinstance(r, str)]

    def _save_written_roots(self) -> None:
        path = self.cache_dir / self.WRITTEN_FILE
        try:
            if self._written_roots:
                self._write_json(path, {'roots': sorted(self._written_roots)})
            elif path.exists():
                path.unlink()
        except OSError as e:
            logging.warning(f"JsonListingCache - Could not save written roots: {e}")
