"""
Tests for URL rewriting (engine/rewrite.py).
"""

from __future__ import annotations

from s3_uploader.engine.rewrite import UrlRewriter

LOCAL = "https://site.example/wp-content/uploads"
REMOTE = "https://mybucket.s3.amazonaws.com"


class TestRewrite:
    def setup_method(self):
        self.rewriter = UrlRewriter(LOCAL, REMOTE)

    def test_local_url_rewritten(self):
        assert (
            self.rewriter.rewrite(f"{LOCAL}/2024/a.webp")
            == "https://mybucket.s3.amazonaws.com/2024/a.webp"
        )

    def test_idempotent(self):
        once = self.rewriter.rewrite(f"{LOCAL}/2024/a.webp")
        assert self.rewriter.rewrite(once) == once

    def test_foreign_url_untouched(self):
        url = "https://cdn.example/2024/a.webp"
        assert self.rewriter.rewrite(url) == url

    def test_prefix_must_end_on_segment(self):
        url = "https://site.example/wp-content/uploads2/a.webp"
        assert self.rewriter.rewrite(url) == url

    def test_query_string_kept(self):
        assert self.rewriter.rewrite(f"{LOCAL}/a.pdf?v=2") == f"{REMOTE}/a.pdf?v=2"

    def test_trailing_slashes_normalised(self):
        rewriter = UrlRewriter(LOCAL + "/", REMOTE + "/")
        assert rewriter.rewrite(f"{LOCAL}/a.pdf") == f"{REMOTE}/a.pdf"


class TestPrepareForClient:
    def setup_method(self):
        self.rewriter = UrlRewriter(LOCAL, REMOTE)

    def test_sizes_forced_to_original(self):
        response = {
            "id": 42,
            "url": f"{LOCAL}/2024/photo.webp",
            "sizes": {
                "thumbnail": {"url": f"{LOCAL}/2024/photo-150x150.jpg", "width": 150},
                "medium": {"url": f"{LOCAL}/2024/photo-300x225.jpg", "width": 300},
                "full": {"url": f"{LOCAL}/2024/photo.webp", "width": 400},
                "custom": {"url": f"{LOCAL}/2024/photo-custom.jpg"},
            },
        }

        result = self.rewriter.prepare_for_client(response, response["url"])

        expected = f"{REMOTE}/2024/photo.webp"
        assert result["sizes"]["thumbnail"]["url"] == expected
        assert result["sizes"]["medium"]["url"] == expected
        assert result["sizes"]["full"]["url"] == expected
        assert result["sizes"]["thumbnail"]["width"] == 150
        # Only the standard sizes are forced
        assert result["sizes"]["custom"]["url"] == f"{LOCAL}/2024/photo-custom.jpg"

    def test_input_not_mutated(self):
        response = {"sizes": {"full": {"url": f"{LOCAL}/a.webp"}}}
        self.rewriter.prepare_for_client(response, f"{LOCAL}/a.webp")
        assert response["sizes"]["full"]["url"] == f"{LOCAL}/a.webp"

    def test_missing_size_not_added(self):
        response = {"sizes": {"full": {"url": f"{LOCAL}/a.webp"}}}
        result = self.rewriter.prepare_for_client(response, f"{LOCAL}/a.webp")
        assert set(result["sizes"]) == {"full"}

    def test_no_sizes(self):
        response = {"id": 7, "url": f"{LOCAL}/doc.pdf"}
        assert self.rewriter.prepare_for_client(response, response["url"]) == response
