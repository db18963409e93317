"""
Tests for the local media library host (host/library.py).
"""

from __future__ import annotations

import json

import pytest

from s3_uploader.host.hooks import ADD_ATTACHMENT, GENERATE_ATTACHMENT_METADATA
from s3_uploader.host.library import LocalMediaLibrary, sanitize_filename


class TestSanitizeFilename:
    @pytest.mark.parametrize("name,expected", [
        ("photo.jpg", "photo.jpg"),
        ("My Holiday Photo.JPG", "My-Holiday-Photo.JPG"),
        ("../../etc/passwd", "passwd"),
        ("...", "upload"),
    ])
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected


class TestStoreUpload:
    def test_default_subdir_is_year_month(self, library):
        path = library.store_upload("a.txt", b"hello")
        year, month = path.parent.relative_to(library.basedir).parts
        assert len(year) == 4 and len(month) == 2

    def test_never_overwrites(self, library):
        first = library.store_upload("a.txt", b"one", subdir="2024")
        second = library.store_upload("a.txt", b"two", subdir="2024")
        assert first.name == "a.txt"
        assert second.name == "a-1.txt"
        assert first.read_bytes() == b"one"


class TestInsertAttachment:
    def test_outside_media_root_rejected(self, library, tmp_path):
        outside = tmp_path / "elsewhere.txt"
        outside.write_text("x")
        with pytest.raises(ValueError):
            library.insert_attachment(outside)

    def test_ids_increment_and_persist(self, library, media_root, hooks):
        a = library.insert_attachment(library.store_upload("a.txt", b"a", subdir="2024"))
        b = library.insert_attachment(library.store_upload("b.txt", b"b", subdir="2024"))
        assert (a.id, b.id) == (1, 2)

        data = json.loads((media_root / "attachments.json").read_text())
        assert [item["file"] for item in data["attachments"]] == ["2024/a.txt", "2024/b.txt"]

        reloaded = LocalMediaLibrary(media_root, library.baseurl, hooks)
        assert reloaded.get_attachment(2).file == "2024/b.txt"

    def test_image_sizes_generated(self, library, make_image, media_root):
        attachment = library.insert_attachment(make_image("2024/photo.jpg", size=(400, 300)))

        sizes = attachment.metadata.sizes
        assert set(sizes) == {"thumbnail", "medium"}
        assert sizes["thumbnail"].file == "photo-150x150.jpg"
        assert (sizes["medium"].width, sizes["medium"].height) == (300, 225)
        assert (media_root / "2024" / "photo-150x150.jpg").exists()
        assert (attachment.metadata.width, attachment.metadata.height) == (400, 300)

    def test_small_image_has_no_variants(self, library, make_image):
        attachment = library.insert_attachment(make_image("tiny.png", size=(32, 32), fmt="PNG"))
        assert attachment.metadata.sizes == {}

    def test_hook_order(self, library, hooks, make_image):
        events = []

        def on_metadata(metadata, attachment_id):
            events.append(("metadata", attachment_id))
            return metadata

        hooks.add_filter(GENERATE_ATTACHMENT_METADATA, on_metadata)
        hooks.add_action(ADD_ATTACHMENT, lambda attachment_id: events.append(("added", attachment_id)))

        library.insert_attachment(make_image("a.jpg"))
        library.insert_attachment(library.store_upload("b.txt", b"b", subdir=""))

        assert events == [("metadata", 1), ("added", 1), ("added", 2)]

    def test_filter_result_persisted(self, library, hooks, make_image):
        def rename(metadata, attachment_id):
            metadata.file = "renamed.jpg"
            return metadata

        hooks.add_filter(GENERATE_ATTACHMENT_METADATA, rename)
        attachment = library.insert_attachment(make_image("a.jpg"))

        assert library.get_attachment_metadata(attachment.id).file == "renamed.jpg"


class TestReadPaths:
    def test_unknown_attachment(self, library):
        with pytest.raises(KeyError):
            library.get_attachment(99)

    def test_attachment_url(self, library):
        attachment = library.insert_attachment(library.store_upload("a.pdf", b"%PDF-1.4", subdir="2024"))
        assert library.get_attachment_url(attachment.id) == f"{library.baseurl}/2024/a.pdf"

    def test_client_representation_for_document(self, library):
        attachment = library.insert_attachment(library.store_upload("a.pdf", b"%PDF-1.4", subdir="2024"))

        response = library.prepare_attachment_for_js(attachment.id)

        assert response["mime"] == "application/pdf"
        assert response["type"] == "application"
        assert response["filename"] == "a.pdf"
        assert "sizes" not in response

    def test_client_representation_for_image(self, library, make_image):
        attachment = library.insert_attachment(make_image("2024/photo.jpg", size=(400, 300)))

        response = library.prepare_attachment_for_js(attachment.id)

        assert response["sizes"]["full"]["url"] == f"{library.baseurl}/2024/photo.jpg"
        assert response["sizes"]["thumbnail"]["url"] == f"{library.baseurl}/2024/photo-150x150.jpg"
        assert response["width"] == 400

    def test_update_attached_file_resniffs_type(self, library, make_image):
        attachment = library.insert_attachment(make_image("2024/photo.jpg"))
        make_image("2024/photo.webp", fmt="WEBP")

        library.update_attached_file(attachment.id, "2024/photo.webp")

        assert library.get_attachment(attachment.id).mime_type == "image/webp"
