"""Photo and static-asset URL templating plus bounded-timeout fetching.

URL templating always succeeds; fetching is best effort.  A photo that is
unreachable, slow or not an image yields ``None`` and the renderers draw a
placeholder box in its place.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from pathlib import Path
from urllib.error import URLError
from urllib.parse import quote, urlparse
from urllib.request import Request, urlopen

from ..worker_pool import WorkerPool

LOGGER = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_S = 10.0
MAX_IMAGE_BYTES = 20 * 1024 * 1024
_REMOTE_SCHEMES = ("http", "https")


def photo_url(host_base: str, photo_id: str) -> str:
    """``{hostBase}/api/images/{photoId}`` with a trailing slash on *host_base* dropped."""
    return f"{host_base.rstrip('/')}/api/images/{quote(str(photo_id), safe='')}"


def asset_url(host_base: str, asset_path: str) -> str:
    """Resolve a static asset (logo, background) against *host_base*."""
    return f"{host_base.rstrip('/')}/{asset_path.lstrip('/')}"


def request_asset_url(host_base: str, ref: str | None) -> str | None:
    """Resolve a caller-supplied asset reference.

    Absolute http(s) URLs pass through, host-relative paths are joined to
    *host_base*, anything else (``file:``, ``data:``, ...) is dropped.
    """
    if not ref:
        return None
    scheme = urlparse(ref).scheme.lower()
    if scheme in _REMOTE_SCHEMES:
        return ref
    if not scheme:
        return asset_url(host_base, ref)
    LOGGER.warning("Ignoring asset reference with unsupported scheme: %s", ref)
    return None


def local_file_url(path: str | Path | None) -> str | None:
    if not path:
        return None
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        LOGGER.warning("Configured asset %s does not exist; skipping.", resolved)
        return None
    return resolved.as_uri()


def fetch_image(
    url: str,
    *,
    timeout_s: float = DEFAULT_FETCH_TIMEOUT_S,
    allow_file: bool = False,
) -> bytes | None:
    """Return the raw bytes at *url*, or ``None`` when the fetch fails.

    Only http(s) is fetched unless *allow_file* is set; that is reserved for
    assets resolved from the server configuration.
    """
    allowed = _REMOTE_SCHEMES + (("file",) if allow_file else ())
    scheme = urlparse(url).scheme.lower()
    if scheme not in allowed:
        LOGGER.warning("Refusing to fetch image with unsupported scheme: %s", url)
        return None
    req = Request(url, headers={"Accept": "image/*"})
    try:
        with urlopen(req, timeout=timeout_s) as resp:  # noqa: S310
            if urlparse(resp.geturl()).scheme.lower() not in allowed:
                LOGGER.warning(
                    "Image fetch for %s redirected to a disallowed scheme; skipping.", url
                )
                return None
            data = resp.read(MAX_IMAGE_BYTES + 1)
    except (URLError, OSError, ValueError) as exc:
        LOGGER.warning("Image fetch failed for %s: %s", url, exc)
        return None
    if not data:
        LOGGER.warning("Image fetch returned no data for %s", url)
        return None
    if len(data) > MAX_IMAGE_BYTES:
        LOGGER.warning("Image at %s exceeds %d bytes; skipping.", url, MAX_IMAGE_BYTES)
        return None
    return data


def prefetch_images(
    urls: Iterable[str],
    pool: WorkerPool,
    *,
    timeout_s: float = DEFAULT_FETCH_TIMEOUT_S,
    trusted: Collection[str] = (),
) -> dict[str, bytes]:
    """Fetch every distinct URL in parallel; failed URLs are absent from the result.

    Only URLs in *trusted* (config-resolved assets) may use ``file:``.
    """
    unique = list(dict.fromkeys(u for u in urls if u))
    if not unique:
        return {}
    trusted = frozenset(trusted)
    results = pool.map_unordered(
        lambda u: fetch_image(u, timeout_s=timeout_s, allow_file=u in trusted), unique
    )
    fetched = {url: data for url, data in results.items() if data is not None}
    if len(fetched) < len(unique):
        LOGGER.info("Fetched %d of %d report images.", len(fetched), len(unique))
    return fetched
