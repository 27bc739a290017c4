"""
Download cache shared by all dataset adapters.

A resource is fetched once, written under ``<root>/<identifier>/`` and
returned from disk on every later request. There is no expiry and no
freshness check: provider files are immutable once published, and a new
release gets a new identifier because the version is part of the name.

Each finished entry holds a ``.meta.json`` marker. Downloads are staged in
a temporary directory inside the root and renamed into place, so a crashed
or concurrent download never leaves a half-written entry that looks
complete. Two processes fetching the same identifier at once both hit the
network; the last rename wins and both wrote identical bytes.
"""

import json
import os
import re
import shutil
import sys
import tempfile
import time
import zipfile
from urllib.parse import urlparse

import requests

from geoartifacts import config
from geoartifacts.errors import DownloadError, NotFoundError
from geoartifacts.http_utils import make_session
from geoartifacts.logging_config import StepTimer, get_logger, log_fetch_summary

log = get_logger(__name__)

META_FILENAME = config.CACHE_META_SUFFIX

_ARCHIVE_EXTS = (".zip", ".gz", ".tar")


def url_filename(url):
    """Last path component of *url*, e.g. ``gadm41_IND.gpkg``."""
    name = os.path.basename(urlparse(url).path)
    if not name:
        raise ValueError(f"URL has no file name: {url}")
    return name


def make_identifier(provider, version, resource):
    """Build a deterministic cache identifier.

    ``resource`` may be a URL or a file name; its extension is dropped so
    ``gadm41_IND.gpkg`` and ``gadm41_IND.gpkg.zip`` style names collapse to
    a readable stem.

    >>> make_identifier("GADM", "4.1", "https://x.org/gadm41_IND.gpkg")
    'GADM_4.1_gadm41_IND'
    """
    stem = url_filename(resource) if "/" in resource else resource
    root, ext = os.path.splitext(stem)
    while ext and ext.lower() in _ARCHIVE_EXTS + (".gpkg", ".csv", ".json"):
        stem = root
        root, ext = os.path.splitext(stem)
    parts = [provider, str(version), stem] if version else [provider, stem]
    return re.sub(r"[^A-Za-z0-9._-]+", "_", "_".join(parts))


class DownloadCache:
    """File-based cache for remote resources.

    Parameters
    ----------
    root : str, optional
        Cache root directory. Default: ``config.CACHE_DIR``.
    session : requests.Session, optional
        Session used for downloads. Default: make_session() on first use.
    timeout : float
        Per-request timeout in seconds; expiry raises DownloadError.
    accept : bool, optional
        Download without asking. When False, a TTY prompt is shown and a
        non-interactive process refuses the download. Default:
        ``config.ALWAYS_ACCEPT``.
    """

    def __init__(self, root=None, session=None,
                 timeout=config.REQUEST_TIMEOUT, accept=None):
        self.root = root or config.CACHE_DIR
        self.timeout = timeout
        self.accept = config.ALWAYS_ACCEPT if accept is None else accept
        self._session = session
        self._stats = {"hits": 0, "misses": 0}

    def __repr__(self):
        return f"DownloadCache(root={self.root!r})"

    @property
    def session(self):
        if self._session is None:
            self._session = make_session()
        return self._session

    def entry_dir(self, identifier):
        return os.path.join(self.root, identifier)

    def is_cached(self, identifier):
        return os.path.isfile(os.path.join(self.entry_dir(identifier), META_FILENAME))

    def ensure_cached(self, identifier, url, unpack=False):
        """Return the entry directory for *identifier*, downloading on a miss.

        Raises
        ------
        NotFoundError
            The server answered 404 for *url*.
        DownloadError
            Any other network or server failure, timeouts included.
        """
        entry = self.entry_dir(identifier)
        if self.is_cached(identifier):
            self._stats["hits"] += 1
            log_fetch_summary(log, identifier, url, cache_hit=True)
            return entry

        self._stats["misses"] += 1
        self._confirm(identifier, url)
        os.makedirs(self.root, exist_ok=True)

        staging = tempfile.mkdtemp(prefix=f".{identifier}.", dir=self.root)
        try:
            with StepTimer() as timer:
                dest = os.path.join(staging, url_filename(url))
                nbytes = self._fetch(url, dest)
                files = [os.path.basename(dest)]
                if unpack and zipfile.is_zipfile(dest):
                    files = _unzip(dest, staging)
                    os.remove(dest)
                _write_meta(staging, identifier, url, files, nbytes)
            self._commit(staging, entry)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        log_fetch_summary(log, identifier, url, cache_hit=False,
                          nbytes=nbytes, timing_seconds=timer.elapsed)
        return entry

    def path_for(self, identifier, url):
        """Return the path of a single-file entry (no unpacking)."""
        entry = self.ensure_cached(identifier, url, unpack=False)
        return os.path.join(entry, url_filename(url))

    def invalidate(self, identifier=None):
        """Remove one entry, or the whole cache when *identifier* is None."""
        if identifier is not None:
            targets = [self.entry_dir(identifier)]
        elif os.path.isdir(self.root):
            targets = [os.path.join(self.root, n) for n in os.listdir(self.root)]
        else:
            targets = []

        removed = 0
        for path in targets:
            if os.path.isdir(path):
                shutil.rmtree(path)
                removed += 1
            elif os.path.isfile(path):
                os.remove(path)
                removed += 1
        log.info("Invalidated %d cache entries", removed)
        return removed

    def get_stats(self):
        """Return cache hit/miss statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = self._stats["hits"] / total * 100 if total > 0 else 0
        return {
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "hit_rate_pct": round(hit_rate, 1),
        }

    # ── internals ──────────────────────────────────────────────────────

    def _confirm(self, identifier, url):
        if self.accept:
            return
        stdin = sys.stdin
        if stdin is None or not stdin.isatty():
            raise DownloadError(
                f"Refusing to download {identifier} without confirmation; "
                "pass accept=True or set GEOARTIFACTS_ALWAYS_ACCEPT=1",
                url=url,
            )
        answer = input(f"Download {identifier} from {url}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            raise DownloadError(f"Download of {identifier} declined", url=url)

    def _fetch(self, url, dest):
        log.debug("GET %s", url)
        try:
            resp = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise DownloadError(
                f"Download failed due to internet and/or server issues: {exc}",
                url=url,
            ) from exc

        if resp.status_code == 404:
            resp.close()
            raise NotFoundError(f"Resource not found (HTTP 404): {url}")

        downloaded = 0
        try:
            resp.raise_for_status()
            with open(dest, "wb") as fh:
                for chunk in resp.iter_content(chunk_size=config.CHUNK_SIZE):
                    fh.write(chunk)
                    downloaded += len(chunk)
        except requests.exceptions.RequestException as exc:
            raise DownloadError(
                f"Download failed due to internet and/or server issues: {exc}",
                url=url,
            ) from exc
        finally:
            resp.close()
        return downloaded

    def _commit(self, staging, entry):
        if os.path.isdir(entry):
            # Incomplete leftover, or another process finished first.
            if os.path.isfile(os.path.join(entry, META_FILENAME)):
                shutil.rmtree(staging, ignore_errors=True)
                return
            shutil.rmtree(entry, ignore_errors=True)
        try:
            os.replace(staging, entry)
        except OSError:
            if not os.path.isfile(os.path.join(entry, META_FILENAME)):
                raise
            shutil.rmtree(staging, ignore_errors=True)


def _unzip(archive, dest_dir):
    with zipfile.ZipFile(archive, "r") as zf:
        zf.extractall(dest_dir)
        return [n for n in zf.namelist() if not n.endswith("/")]


def _write_meta(entry, identifier, url, files, nbytes):
    meta = {
        "identifier": identifier,
        "url": url,
        "created": time.time(),
        "files": files,
        "bytes": nbytes,
    }
    with open(os.path.join(entry, META_FILENAME), "w") as f:
        json.dump(meta, f, indent=2)


def read_meta(entry):
    """Load the ``.meta.json`` marker of a cache entry directory."""
    with open(os.path.join(entry, META_FILENAME)) as f:
        return json.load(f)


_default_cache = None


def get_default_cache():
    """Process-wide cache rooted at ``config.CACHE_DIR``."""
    global _default_cache
    if _default_cache is None:
        _default_cache = DownloadCache()
    return _default_cache


def set_default_cache(cache):
    """Replace the process-wide cache; returns the previous one."""
    global _default_cache
    previous, _default_cache = _default_cache, cache
    return previous
