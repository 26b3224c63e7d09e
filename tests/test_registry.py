import pytest

from termview.detection import ClassifiedContent
from termview.errors import UnsupportedTypeError
from termview.registry import REGISTRY, InvocationMode, Strategy, entry_for, select_strategy


@pytest.mark.parametrize(
    ("mime", "ext", "expected"),
    [
        ("image/svg", "svg", Strategy.SVG),
        ("image/png", "png", Strategy.BUILTIN),
        ("image/jpeg", "jpg", Strategy.BUILTIN),
        ("image/x-icon", "ico", Strategy.BUILTIN),
        ("image/x-portable-pixmap", "ppm", Strategy.BUILTIN),
        ("image/x-portable-floatmap", "pfm", None),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "docx", Strategy.OFFICE),
        ("application/vnd.ms-excel", "xls", Strategy.OFFICE),
        ("application/vnd.oasis.opendocument.text", "odt", Strategy.OFFICE),
        ("text/rtf", "rtf", Strategy.OFFICE),
        ("text/csv", "csv", Strategy.OFFICE),
        ("text/tab-separated-values", "tsv", Strategy.OFFICE),
        ("text/plain", "csv", Strategy.OFFICE),
        ("text/plain", "tsv", Strategy.OFFICE),
        ("application/pdf", "pdf", Strategy.VIPS),
        ("image/heic", "heic", Strategy.VIPS),
        ("image/avif", "avif", Strategy.VIPS),
        ("image/vnd.adobe.photoshop", "psd", Strategy.MUPDF),
        ("image/jxr", "jxr", None),
        ("application/epub+zip", "epub", Strategy.MUPDF),
        ("application/x-mobipocket-ebook", "mobi", Strategy.MUPDF),
        ("text/fb2", "fb2", Strategy.MUPDF),
        ("text/xml", "fb2", Strategy.MUPDF),
        ("application/zip", "xps", Strategy.MUPDF),
        ("text/plain", "mmd", Strategy.MERMAID),
        ("text/plain", "md", Strategy.MARKDOWN),
        ("text/plain", "", Strategy.MARKDOWN),
        ("font/ttf", "ttf", Strategy.FONT),
        ("font/woff2", "woff2", Strategy.FONT),
        ("video/mp4", "mp4", Strategy.VIDEO),
        ("audio/mpeg", "mp3", Strategy.AUDIO),
        ("audio/flac", "flac", Strategy.AUDIO),
        ("application/x-7z-compressed", "cb7", Strategy.COMIC),
        ("application/x-rar-compressed", "cbr", Strategy.COMIC),
        ("application/x-tar", "cbt", Strategy.COMIC),
        ("application/zip", "cbz", Strategy.COMIC),
        ("application/vnd.microsoft.portable-executable", "exe", Strategy.WINPE),
        ("application/zip", "zip", None),
        ("application/x-tar", "tar", None),
        ("text/xml", "xml", None),
        ("application/octet-stream", "bin", None),
    ],
)
def test_select_strategy_matrix(mime, ext, expected):
    content = ClassifiedContent(mime_type=mime, extension=ext)
    if expected is None:
        with pytest.raises(UnsupportedTypeError) as exc:
            select_strategy(content)
        assert f"mime type '{mime}' not supported" in str(exc.value)
    else:
        assert select_strategy(content).strategy is expected


def test_pdf_prefers_vips_over_mupdf():
    vips = [entry.strategy for entry in REGISTRY].index(Strategy.VIPS)
    mupdf = [entry.strategy for entry in REGISTRY].index(Strategy.MUPDF)
    assert vips < mupdf
    assert select_strategy(ClassifiedContent("application/pdf", "pdf")).strategy is Strategy.VIPS


def test_invocation_modes():
    assert entry_for(Strategy.OFFICE).mode is InvocationMode.PATH
    assert entry_for(Strategy.MERMAID).mode is InvocationMode.PATH
    assert entry_for(Strategy.VIDEO).mode is InvocationMode.PATH
    assert entry_for(Strategy.VIPS).mode is InvocationMode.STREAM
    named = {entry.strategy for entry in REGISTRY if entry.requires_named_source}
    assert named == {Strategy.AUDIO, Strategy.COMIC, Strategy.WINPE}


def test_every_strategy_is_registered_once():
    strategies = [entry.strategy for entry in REGISTRY]
    assert sorted(strategies, key=lambda s: s.value) == sorted(Strategy, key=lambda s: s.value)
