import pytest

from media import (
    MAX_FILE_SIZE,
    BlobMediaLibrary,
    InvalidMedia,
    LocalMediaLibrary,
    MediaError,
    MediaLibrary,
    MediaNotFound,
    build_media_library,
    sanitize_filename,
    upload_pathname,
)


def test_sanitize_filename():
    assert sanitize_filename("My Cool Photo (1)") == "my-cool-photo-1"
    assert sanitize_filename("--__ok.v2--") == "__ok.v2"


def test_upload_pathname():
    assert upload_pathname("Hero Shot.PNG", 1700000000000) == "uploads/1700000000000-hero-shot.png"
    assert upload_pathname("noext", 1) == "uploads/1-noext.jpg"
    assert upload_pathname(".png", 1) == "uploads/1-image.png"


class TestLocalMediaLibrary:
    def test_upload_list_delete(self, tmp_path):
        library = LocalMediaLibrary(tmp_path / "uploads")
        image = library.upload("logo.svg", "image/svg+xml", b"<svg/>")
        assert image.filename.startswith("uploads/")
        assert image.url.startswith("/uploads/")

        assert library.list() == [image]
        library.delete(image.filename[len("uploads/"):])
        assert library.list() == []

    def test_rejects_bad_uploads(self, tmp_path):
        library = LocalMediaLibrary(tmp_path)
        with pytest.raises(InvalidMedia):
            library.upload("notes.txt", "text/plain", b"hi")
        with pytest.raises(InvalidMedia):
            library.upload("big.png", "image/png", b"0" * (MAX_FILE_SIZE + 1))

    @pytest.mark.parametrize("name", ["../secret", "a/b.png", "a\\b.png", ""])
    def test_rejects_traversal(self, tmp_path, name):
        with pytest.raises(InvalidMedia):
            LocalMediaLibrary(tmp_path).delete(name)

    def test_delete_missing(self, tmp_path):
        with pytest.raises(MediaNotFound):
            LocalMediaLibrary(tmp_path).delete("nope.png")


class TestBlobMediaLibrary:
    def test_lists_only_uploads(self, fake_blob):
        fake_blob.put("data/projects.json", b"[]", "application/json")
        library = BlobMediaLibrary(fake_blob)
        image = library.upload("shot.webp", "image/webp", b"RIFF")
        assert [i.filename for i in library.list()] == [image.filename]

    def test_delete_by_bare_name(self, fake_blob):
        library = BlobMediaLibrary(fake_blob)
        image = library.upload("shot.gif", "image/gif", b"GIF89a")
        library.delete(image.filename.split("/", 1)[1])
        assert library.list() == []

    def test_delete_missing(self, fake_blob):
        with pytest.raises(MediaNotFound):
            BlobMediaLibrary(fake_blob).delete("ghost.png")


def test_build_media_library(tmp_path, fake_blob):
    assert isinstance(build_media_library(tmp_path, fake_blob), BlobMediaLibrary)
    assert isinstance(build_media_library(tmp_path), LocalMediaLibrary)
    library = build_media_library(None)
    assert library.list() == []
    with pytest.raises(MediaError):
        library.upload("a.png", "image/png", b"x")
    assert type(library) is MediaLibrary
