"""
URL Rewriter — Point attachment URLs at the bucket instead of local uploads.

Runs on every read of an attachment URL, so it is a plain string
substitution: no I/O, no cache, no state.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

# Size entries of a client representation forced to the original URL
LIBRARY_SIZES = ("thumbnail", "medium", "large", "full")


class UrlRewriter:
    """Swap the local upload base URL for the object-store base URL."""

    def __init__(self, local_base_url: str, remote_base_url: str):
        self.local_base_url = local_base_url.rstrip("/")
        self.remote_base_url = remote_base_url.rstrip("/")

    def rewrite(self, url: str) -> str:
        """
        Replace the local base prefix with the remote one.

        URLs without the local prefix (already rewritten, external) come
        back unchanged, so applying this twice is harmless.
        """
        if not self.local_base_url or not url.startswith(self.local_base_url):
            return url
        rest = url[len(self.local_base_url):]
        if rest and rest[0] not in "/?#":
            # Prefix matched mid-segment (…/uploads2/…), not our base
            return url
        return self.remote_base_url + rest

    def prepare_for_client(self, response: Dict[str, Any], attachment_url: str) -> Dict[str, Any]:
        """
        Force every known size entry to the rewritten original URL.

        No resized variants exist remotely, so thumbnails degrade to the
        full image instead of 404ing.
        """
        result = copy.deepcopy(response)
        sizes = result.get("sizes")
        if not isinstance(sizes, dict):
            return result

        src = self.rewrite(attachment_url)
        for size in LIBRARY_SIZES:
            entry = sizes.get(size)
            if isinstance(entry, dict):
                entry["url"] = src
        return result
