"""Tests for extension-based image classification."""

import pytest

from vision_relay.core.image import NOT_IMAGE, ImageFile, NotImage, classify, mime_type_for


@pytest.mark.parametrize(
    "path,mime_type",
    [
        ("/tmp/shot.png", "image/png"),
        ("/tmp/photo.JPG", "image/jpeg"),
        ("/tmp/photo.jpeg", "image/jpeg"),
        ("relative/anim.gif", "image/gif"),
        ("/tmp/pic.WebP", "image/webp"),
        ("/tmp/archive.tar.png", "image/png"),
        ("C:\\Users\\me\\shot.png", "image/png"),
    ],
)
def test_image_extensions(path, mime_type):
    assert classify(path) == ImageFile(mime_type=mime_type)


@pytest.mark.parametrize(
    "path",
    [
        "/tmp/notes.txt",
        "/tmp/README",
        "/tmp/image.png.bak",
        "/tmp/trailing.",
        "/tmp/pic.svg",
        "/tmp/pic.bmp",
        "/tmp/png/file",
        "",
    ],
)
def test_non_images(path):
    assert classify(path) is NOT_IMAGE


def test_dotfile_uses_name_after_dot():
    assert classify("/home/me/.png") == ImageFile(mime_type="image/png")


def test_never_opens_the_file(tmp_path):
    missing = tmp_path / "missing.png"
    assert not missing.exists()
    assert isinstance(classify(str(missing)), ImageFile)


def test_custom_extension_set():
    assert classify("/tmp/a.bmp", ["bmp"]) == ImageFile(mime_type="image/bmp")
    assert isinstance(classify("/tmp/a.png", ["bmp"]), NotImage)


def test_mime_type_for():
    assert mime_type_for("jpg") == "image/jpeg"
    assert mime_type_for("webp") == "image/webp"
