import io
import threading

import magic
import pytest

from conftest import FakeEncoder, fake_from_buffer, png_bytes, write_png
from termview.config import RenderConfig
from termview.core import RenderService
from termview.errors import (
    CapabilityError,
    ClassificationError,
    TerminalGraphicsUnavailable,
    UnsupportedTypeError,
)
from termview.models import Target


def build_service(config=None, encoder=None, **kwargs):
    return RenderService(config or RenderConfig(vips_concurrency=1), encoder=encoder or FakeEncoder(), **kwargs)


def test_batch_continues_past_failing_target(tmp_path, fake_magic):
    first = write_png(tmp_path / "a.png", (3, 2))
    broken = tmp_path / "b.bin"
    broken.write_bytes(b"\x00\x01\x02")
    last = write_png(tmp_path / "c.png", (5, 4))
    encoder = FakeEncoder()
    out = io.StringIO()

    result = build_service(encoder=encoder).run([str(first), str(broken), str(last)], out)

    assert result.summary.total == 3
    assert result.summary.successes == 2
    assert result.summary.failures == 1
    assert isinstance(result.results[1].error, UnsupportedTypeError)
    assert [img.size for img in encoder.images] == [(3, 2), (5, 4)]
    assert out.getvalue() == (
        f"{first}:\n<image 3x2>\n"
        f"{broken}:\n"
        f'error: unable to render "{broken}": mime type \'application/octet-stream\' not supported\n\n'
        f"{last}:\n<image 5x4>\n"
    )


def test_batch_continues_past_classification_failure(tmp_path, monkeypatch):
    first = write_png(tmp_path / "a.png", (3, 2))
    broken = tmp_path / "b.dat"
    broken.write_bytes(b"\x00corrupt")
    last = write_png(tmp_path / "c.png", (5, 4))

    def from_buffer(data, mime=False):
        if data.startswith(b"\x00"):
            raise magic.MagicException("corrupt database")
        return fake_from_buffer(data, mime)

    monkeypatch.setattr("termview.detection.magic.from_buffer", from_buffer)
    encoder = FakeEncoder()
    out = io.StringIO()

    result = build_service(encoder=encoder).run([str(first), str(broken), str(last)], out)

    assert result.summary.successes == 2
    assert result.summary.failures == 1
    assert [r.ok for r in result.results] == [True, False, True]
    assert isinstance(result.results[1].error, ClassificationError)
    assert [img.size for img in encoder.images] == [(3, 2), (5, 4)]
    assert out.getvalue() == (
        f"{first}:\n<image 3x2>\n"
        f"{broken}:\n"
        f'error: unable to render "{broken}": mime detection failed: corrupt database\n\n'
        f"{last}:\n<image 5x4>\n"
    )


def test_open_errors_are_reported_first(tmp_path, fake_magic):
    good = write_png(tmp_path / "a.png")
    missing = str(tmp_path / "missing.png")
    out = io.StringIO()

    result = build_service().run([good.as_posix(), missing], out)

    lines = out.getvalue().splitlines()
    assert lines[0] == f'error: unable to open "{missing}": unable to open "{missing}"'
    assert lines[1] == ""
    assert lines[2] == f"{good}:"
    assert result.summary.open_failures == 1
    assert result.summary.successes == 1


def test_directory_argument(tmp_path, fake_magic):
    write_png(tmp_path / "b.png")
    (tmp_path / "a.svg").write_bytes(b"<svg/>")
    (tmp_path / "skip.xyz").write_bytes(b"x")
    out = io.StringIO()

    class SvgFreeService(RenderService):
        def render(self, target):
            if target.path.endswith(".svg"):
                raise RuntimeError("no rasterizer")
            return super().render(target)

    result = SvgFreeService(RenderConfig(vips_concurrency=1), encoder=FakeEncoder()).run([str(tmp_path)], out)
    assert [r.target.path for r in result.results] == [str(tmp_path / "a.svg"), str(tmp_path / "b.png")]
    assert result.summary.failures == 1


def test_url_renders_qr_code(fake_magic):
    encoder = FakeEncoder()
    out = io.StringIO()
    result = build_service(RenderConfig(border=4, vips_concurrency=1), encoder).run(["https://example.com"], out)
    assert result.summary.successes == 1
    assert result.results[0].mime_type == "image/bitmap"
    image = encoder.images[0]
    assert image.width == image.height
    assert out.getvalue().startswith("https://example.com:\n")


def test_background_applied_to_decoded_image(tmp_path, fake_magic):
    path = tmp_path / "clear.png"
    path.write_bytes(png_bytes((2, 2), (0, 0, 0, 0)))
    service = build_service(RenderConfig(background="white", vips_concurrency=1))
    result = service.render(Target(str(path)))
    assert result.image.getpixel((0, 0)) == (255, 255, 255, 255)
    assert result.strategy == "builtin"
    assert result.timings.total_ms >= 0


def test_capability_check_rejects_unnamed_stream(fake_magic):
    service = build_service()
    with pytest.raises(CapabilityError) as exc:
        service.decode_stream("song.mp3", io.BytesIO(b"ID3\x04\x00"))
    assert "capability not supported" in str(exc.value)


def test_graphics_unavailable_fails_before_targets(tmp_path, fake_magic):
    path = write_png(tmp_path / "a.png")
    out = io.StringIO()
    with pytest.raises(TerminalGraphicsUnavailable):
        build_service(encoder=FakeEncoder(available=False)).run([str(path)], out)
    assert out.getvalue() == ""


def test_cancellation_stops_the_queue(tmp_path, fake_magic):
    paths = [str(write_png(tmp_path / f"{name}.png")) for name in "abc"]
    cancel = threading.Event()
    cancel.set()
    result = build_service(cancellation=cancel).run(paths, io.StringIO())
    assert result.results == []
    assert result.summary.total == 0
