import io

from PIL import Image

from navshell.icons import load_icon, placeholder_png


def test_placeholder_is_square_png() -> None:
    image = Image.open(io.BytesIO(placeholder_png("F", 32)))
    assert image.format == "PNG"
    assert image.size == (32, 32)


def test_missing_icon_falls_back_to_placeholder(qt_app, tmp_path) -> None:
    pixmap = load_icon(str(tmp_path / "missing.png"), 28, "Files")
    assert not pixmap.isNull()
    assert pixmap.width() == 28


def test_unreadable_icon_falls_back_to_placeholder(qt_app, tmp_path) -> None:
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")
    assert load_icon(str(broken), 24, "x").width() == 24


def test_icon_from_disk_is_scaled(qt_app, tmp_path) -> None:
    path = tmp_path / "app.png"
    Image.new("RGBA", (128, 128), (255, 0, 0, 255)).save(path)
    pixmap = load_icon(str(path), 32)
    assert (pixmap.width(), pixmap.height()) == (32, 32)
