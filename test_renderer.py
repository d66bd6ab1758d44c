#!/usr/bin/env python3
"""
Tests for collage rendering.
Creates solid-colour cover images and renders packed layouts.
"""

import sys
sys.path.insert(0, '.')

import logging
import pytest
from PIL import Image

from collage_core import GameItem, CollagePacker, CollageRenderer, LayoutSpec
from collage_core.renderer import header_height_for


COVER_COLOR = (200, 30, 40)
PLACEHOLDER_RGB = (249, 115, 22)


def create_covers(cover_dir, ids, size=(600, 900)):
    """Create simple cover images for the given game ids."""
    cover_dir.mkdir(exist_ok=True)
    for item_id in ids:
        Image.new('RGB', size, color=COVER_COLOR).save(cover_dir / f"{item_id}.jpg", quality=100)


def library():
    weights = [45000, 12000, 3000, 900, 300, 60, 0, 0, 15, 700, 1500, 2200]
    return [GameItem(i + 1, f"Game number {i + 1}", w) for i, w in enumerate(weights)]


def cell_center(placed):
    return int(placed.x + placed.width / 2), int(placed.y + placed.height / 2)


def test_render_full_collage(tmp_path):
    games = library()
    with_covers = [g.id for g in games if g.id % 2 == 1]
    create_covers(tmp_path / "covers", with_covers)
    
    result = CollagePacker().layout(games)
    renderer = CollageRenderer(cover_dir=tmp_path / "covers", completed_ids=[1])
    output = tmp_path / "collage.png"
    log_path = tmp_path / "collage.log"
    
    missing = renderer.render(result, output, log_path=log_path, project_name="test")
    
    placed_ids = {p.id for p in result.placements}
    assert missing == len(placed_ids - set(with_covers))
    assert log_path.exists()
    assert "Games Placed" in log_path.read_text(encoding='utf-8')
    
    with Image.open(output) as img:
        assert img.size == (result.canvas_width, result.canvas_height)
        img = img.convert('RGB')
        for placed in result.placements:
            if placed.id == 1:
                continue
            # Corner pixel avoids the name label and the hours badge
            pixel = img.getpixel((int(placed.x) + 2, int(placed.y) + 2))
            expected = COVER_COLOR if placed.id in with_covers else PLACEHOLDER_RGB
            assert all(abs(a - b) <= 12 for a, b in zip(pixel, expected)), (placed.id, pixel)


def test_render_marks_completed_games(tmp_path):
    games = library()
    create_covers(tmp_path / "covers", [g.id for g in games])
    result = CollagePacker().layout(games)
    first = next(p for p in result.placements if p.id == 1)
    
    output = tmp_path / "completed.png"
    CollageRenderer(cover_dir=tmp_path / "covers", completed_ids=[1]).render(result, output)
    
    with Image.open(output) as img:
        thickness = max(2, int(min(first.width, first.height) * 0.02 + 0.5))
        inset = thickness // 2 + 2
        pixel = img.convert('RGB').getpixel((int(first.x) + inset, int(first.y + first.height / 2)))
        assert pixel == (255, 215, 0)


def test_render_without_cover_dir_uses_placeholders(tmp_path):
    games = library()[:4]
    result = CollagePacker().layout(games)
    missing = CollageRenderer().render(result, tmp_path / "plain.png")
    assert missing == result.placed_count


def test_render_survives_corrupt_cover(tmp_path):
    cover_dir = tmp_path / "covers"
    cover_dir.mkdir()
    (cover_dir / "1.jpg").write_bytes(b"not an image")
    
    result = CollagePacker().layout([GameItem(1, "Broken", 100)])
    missing = CollageRenderer(cover_dir=cover_dir).render(result, tmp_path / "broken.png")
    assert missing == 1


def test_render_names_cover_art_for_placeholders(tmp_path, caplog):
    cover_dir = tmp_path / "covers"
    cover_dir.mkdir()
    result = CollagePacker().layout([GameItem(440, "Team Fortress 2", 100)])
    
    with caplog.at_level(logging.WARNING, logger="collage_core.renderer"):
        CollageRenderer(cover_dir=cover_dir).render(result, tmp_path / "missing.png")
    
    assert "steam/apps/440/library_600x900_2x.jpg" in caplog.text
    assert "Team Fortress 2" in caplog.text


def test_render_with_header(tmp_path):
    games = library()
    header = header_height_for(1920)
    result = CollagePacker(LayoutSpec(header_height=header)).layout(games)
    output = tmp_path / "header.png"
    CollageRenderer(profile_name="Player One").render(result, output)
    
    with Image.open(output) as img:
        # Header bar colour at the far right edge, clear of the text
        assert img.convert('RGB').getpixel((img.width - 2, 2)) == (15, 17, 21)


def test_header_height_bounds():
    assert header_height_for(500) == 60
    assert header_height_for(1500) == 90
    assert header_height_for(7680) == 100


def test_generate_preview(tmp_path):
    games = library()
    create_covers(tmp_path / "covers", [g.id for g in games], size=(300, 300))
    result = CollagePacker().layout(games)
    
    size = CollageRenderer(cover_dir=tmp_path / "covers").generate_preview(
        result, tmp_path / "preview.png", max_dimension=500)
    
    assert max(size) <= 500
    with Image.open(tmp_path / "preview.png") as img:
        assert img.size == size


def test_render_failure_is_logged_and_raised(tmp_path):
    result = CollagePacker().layout(library()[:2])
    log_path = tmp_path / "failed.log"
    
    with pytest.raises(OSError):
        CollageRenderer().render(result, tmp_path / "missing_dir" / "out.png", log_path=log_path)
    assert "FAILED" in log_path.read_text(encoding='utf-8')


def test_cover_fit_crops_to_cell():
    renderer = CollageRenderer()
    wide = Image.new('RGB', (900, 300), color=COVER_COLOR)
    fitted = renderer._cover_fit(wide, 200, 300)
    assert fitted.size == (200, 300)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
