import io

import pytest

from termview.detection import SNIFF_LIMIT, classify, file_ext, normalize_mime
from termview.errors import ClassificationError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("image/svg+xml", "image/svg"),
        ("text/plain; charset=utf-8", "text/plain"),
        ("Image/PNG", "image/png"),
        ("text/fb2+xml", "text/fb2"),
        ("application/x-dosexec", "application/vnd.microsoft.portable-executable"),
        ("image/x-ms-bmp", "image/bmp"),
        ("image/vnd.microsoft.icon", "image/x-icon"),
        ("application/vnd.rar", "application/x-rar-compressed"),
        ("text/markdown", "text/plain"),
        ("application/epub+zip", "application/epub+zip"),
        ("application/x-mobipocket-ebook", "application/x-mobipocket-ebook"),
    ],
)
def test_normalize_mime(raw, expected):
    assert normalize_mime(raw) == expected


def test_file_ext():
    assert file_ext("/tmp/Report.DOCX") == "docx"
    assert file_ext("archive.tar.gz") == "gz"
    assert file_ext("README") == ""


def test_classify_reads_bounded_prefix_and_rewinds(monkeypatch):
    seen = {}

    def from_buffer(data, mime=False):
        seen["length"] = len(data)
        return "image/svg+xml"

    monkeypatch.setattr("termview.detection.magic.from_buffer", from_buffer)
    source = io.BytesIO(b"<svg" + b" " * (SNIFF_LIMIT * 2))
    content = classify(source, "drawing.SVG")
    assert content.mime_type == "image/svg"
    assert content.extension == "svg"
    assert seen["length"] == SNIFF_LIMIT
    assert source.tell() == 0


def test_classify_unreadable_stream():
    source = io.BytesIO(b"data")
    source.close()
    with pytest.raises(ClassificationError) as exc:
        classify(source, "closed.png")
    assert "mime detection failed" in str(exc.value)


def test_classify_magic_failure(monkeypatch):
    import magic

    def from_buffer(data, mime=False):
        raise magic.MagicException("bad database")

    monkeypatch.setattr("termview.detection.magic.from_buffer", from_buffer)
    with pytest.raises(ClassificationError):
        classify(io.BytesIO(b"\x00\x01"), "blob.bin")
