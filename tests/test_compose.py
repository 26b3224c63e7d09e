from PIL import Image

from termview.compose import add_background, add_border
from termview.config import RenderConfig
from termview.registry import Strategy


def test_opaque_image_over_same_color_is_unchanged():
    config = RenderConfig(background="red")
    src = Image.new("RGBA", (5, 4), (255, 0, 0, 255))
    out = add_background(src, "image/png", config)
    assert out.size == src.size
    assert list(out.getdata()) == list(src.getdata())


def test_transparent_pixels_take_background():
    config = RenderConfig(background="#00ff00")
    src = Image.new("RGBA", (2, 2), (0, 0, 0, 0))
    src.putpixel((0, 0), (0, 0, 255, 255))
    out = add_background(src, "image/png", config)
    assert out.getpixel((0, 0)) == (0, 0, 255, 255)
    assert out.getpixel((1, 1)) == (0, 255, 0, 255)


def test_vector_output_is_skipped():
    config = RenderConfig(background="white")
    src = Image.new("RGBA", (2, 2), (0, 0, 0, 0))
    assert add_background(src, "image/svg", config) is src


def test_transparent_background_is_skipped():
    src = Image.new("RGBA", (2, 2), (0, 0, 0, 0))
    assert add_background(src, "image/png", RenderConfig()) is src


def test_mermaid_uses_its_own_background():
    config = RenderConfig(mermaid_background="#101010")
    src = Image.new("RGBA", (1, 1), (0, 0, 0, 0))
    out = add_background(src, "text/plain", config, Strategy.MERMAID)
    assert out.getpixel((0, 0)) == (16, 16, 16, 255)
    assert add_background(src, "text/plain", config, Strategy.MARKDOWN) is src


def test_add_border_pads_every_side():
    config = RenderConfig(background="white", border=3)
    src = Image.new("RGBA", (4, 2), (0, 0, 0, 255))
    out = add_border(src, config)
    assert out.size == (10, 8)
    assert out.getpixel((0, 0)) == (255, 255, 255, 255)
    assert out.getpixel((3, 3)) == (0, 0, 0, 255)


def test_add_border_transparent_without_background():
    src = Image.new("RGBA", (1, 1), (0, 0, 0, 255))
    out = add_border(src, RenderConfig(border=2))
    assert out.getpixel((0, 0))[3] == 0
