# tests/test_sources.py
from __future__ import annotations
from pathlib import Path

from PIL import Image
import pytest
import requests

from avatoken.sources import (
    DecodeError, UnsupportedImageError, fetch_image, is_image_file, is_url,
    load_image, output_name, save_png,
)

from conftest import FakeResponse, png_bytes


@pytest.mark.parametrize("name,expected", [
    ("cat.png", "token_cat.png"),
    ("photos/danimalsound_wolf.jpg", "token_wolf.png"),
    ("danimalsound_a_danimalsound_b.gif", "token_a_danimalsound_b.png"),
    ("no_ext", "token_no_ext.png"),
])
def test_output_name(name, expected):
    assert output_name(name) == expected


def test_output_name_custom_prefix_and_strip():
    assert output_name("x_face.png", prefix="av_", strip=["x_"]) == "av_face.png"
    assert output_name("x_face.png", prefix="", strip=[]) == "x_face.png"


def test_is_url_and_is_image_file():
    assert is_url("https://example.com/a.png")
    assert is_url("HTTP://example.com/a")
    assert not is_url("ftp://example.com/a.png")
    assert not is_url("/tmp/a.png")
    assert is_image_file("a.JPG") and is_image_file("b.bmp") and is_image_file("c.gif")
    assert not is_image_file("notes.txt") and not is_image_file("pic.tiff")


def test_load_image_errors(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "missing.png")

    txt = tmp_path / "notes.txt"
    txt.write_text("hello", encoding="utf-8")
    with pytest.raises(UnsupportedImageError):
        load_image(txt)

    bad = tmp_path / "broken.png"
    bad.write_bytes(b"definitely not a png")
    with pytest.raises(DecodeError):
        load_image(bad)


def test_load_image_reads_fully(tmp_path: Path):
    p = tmp_path / "ok.png"
    Image.new("RGB", (8, 6), (1, 2, 3)).save(p)
    im = load_image(p)
    p.unlink()  # file closed and pixels already in memory
    assert im.size == (8, 6)
    assert im.getpixel((0, 0)) == (1, 2, 3)


def test_save_png_creates_dir(tmp_path: Path):
    out = save_png(Image.new("RGBA", (4, 4)), tmp_path / "a" / "b", "token_x.png")
    assert out == tmp_path / "a" / "b" / "token_x.png"
    with Image.open(out) as im:
        assert im.format == "PNG"


def test_fetch_png(fake_get):
    url = "https://example.com/img/danimalsound_owl.png?size=big"
    fake_get[url] = FakeResponse(png_bytes(Image.new("RGB", (9, 9), (5, 6, 7))), "image/png")
    im, name = fetch_image(url)
    assert im.size == (9, 9)
    assert name == "danimalsound_owl.png"
    assert output_name(name) == "token_owl.png"


def test_fetch_jpeg_with_charset_and_no_name(fake_get):
    url = "https://example.com/"
    fake_get[url] = FakeResponse(png_bytes(Image.new("RGB", (9, 9)), "JPEG"), "image/jpeg; charset=binary")
    im, name = fetch_image(url)
    assert im.size == (9, 9)
    assert name == "download.jpg"


def test_fetch_octet_stream_falls_back_to_extension(fake_get):
    ok = "https://cdn.example.com/a.jpeg"
    fake_get[ok] = FakeResponse(png_bytes(Image.new("RGB", (3, 3)), "JPEG"), "application/octet-stream")
    assert fetch_image(ok)[1] == "a.jpeg"

    nope = "https://cdn.example.com/a.gif"
    fake_get[nope] = FakeResponse(png_bytes(Image.new("RGB", (3, 3)), "GIF"), "application/octet-stream")
    with pytest.raises(UnsupportedImageError):
        fetch_image(nope)


def test_fetch_rejects_other_types(fake_get):
    url = "https://example.com/page.png"
    fake_get[url] = FakeResponse(b"<html></html>", "text/html")
    with pytest.raises(UnsupportedImageError):
        fetch_image(url)


def test_fetch_http_error_and_garbage(fake_get):
    fake_get["https://example.com/404.png"] = FakeResponse(b"", "text/plain", status_code=404)
    with pytest.raises(requests.HTTPError):
        fetch_image("https://example.com/404.png")

    fake_get["https://example.com/junk.png"] = FakeResponse(b"junk", "image/png")
    with pytest.raises(DecodeError):
        fetch_image("https://example.com/junk.png")

    with pytest.raises(requests.ConnectionError):
        fetch_image("https://unreachable.example.com/x.png")


def test_output_name_strips_marker_once_from_whole_path():
    # the first marker sits in the folder name, so the file keeps its own
    assert output_name("danimalsound_pack/danimalsound_fox.png") == "token_danimalsound_fox.png"
    assert output_name("pack/danimalsound_fox.png") == "token_fox.png"
