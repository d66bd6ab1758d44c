#!/usr/bin/env python3
"""
End-to-end test for Playtime Collage.
Writes library files and cover images, then runs the command line application.
"""

import sys
sys.path.insert(0, '.')

import json
import re
from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

import collage_image_prep
from collage_core.logger import log_project, generate_log_filename, generate_png_filename


def write_library(path: Path, games):
    payload = {"response": {"game_count": len(games), "games": games}}
    path.write_text(json.dumps(payload), encoding='utf-8')
    return path


@pytest.fixture
def accounts(tmp_path):
    """Two accounts sharing one game, plus covers for a few ids."""
    first = write_library(tmp_path / "first.json", [
        {"appid": 440, "name": "Team Fortress 2", "playtime_forever": 36000},
        {"appid": 620, "name": "Portal 2", "playtime_forever": 1200},
        {"appid": 70, "name": "Half-Life", "playtime_forever": 0},
    ])
    second = write_library(tmp_path / "second.json", [
        {"appid": 440, "name": "Team Fortress 2", "playtime_forever": 600},
        {"appid": 730, "name": "Counter-Strike 2", "playtime_forever": 5400},
    ])
    
    covers = tmp_path / "covers"
    covers.mkdir()
    for i, appid in enumerate([440, 730]):
        Image.new('RGB', (600, 900), color=(i * 80, 120, 200)).save(covers / f"{appid}.png")
    return first, second, covers


def test_command_line_full_render(tmp_path, accounts):
    first, second, covers = accounts
    output = tmp_path / "out.png"
    log_dir = tmp_path / "logs"
    
    status = collage_image_prep.main([
        str(first), str(second), "--covers", str(covers), "--output", str(output),
        "--header", "--profile", "Tester", "--completed", "440", "--log-dir", str(log_dir),
        "--name", "steam"
    ])
    
    assert status == 0
    with Image.open(output) as img:
        assert img.size == (1100, 1920)
    
    logs = list(log_dir.glob("steam_*_full.log"))
    assert len(logs) == 1
    content = logs[0].read_text(encoding='utf-8')
    assert "Input Games: 4" in content
    assert "Games Placed: 4" in content


def test_command_line_preview_grid(tmp_path, accounts, monkeypatch):
    first, second, covers = accounts
    monkeypatch.chdir(tmp_path)
    
    status = collage_image_prep.main([str(first), "--mode", "grid", "--preview", "--no-jitter"])
    
    assert status == 0
    outputs = list(tmp_path.glob("collage-3games-*.png"))
    assert len(outputs) == 1
    with Image.open(outputs[0]) as img:
        assert max(img.size) <= 2000


def test_command_line_achievement_files(tmp_path, accounts, monkeypatch):
    first, second, covers = accounts
    complete = {"playerstats": {"success": True, "achievements": [{"achieved": 1}, {"achieved": 1}]}}
    partial = {"playerstats": {"success": True, "achievements": [{"achieved": 1}, {"achieved": 0}]}}
    (tmp_path / "620.json").write_text(json.dumps(complete), encoding='utf-8')
    (tmp_path / "730.json").write_text(json.dumps(partial), encoding='utf-8')
    
    seen = {}
    
    class RecordingRenderer(collage_image_prep.CollageRenderer):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            seen["completed"] = self.completed_ids
    
    monkeypatch.setattr(collage_image_prep, "CollageRenderer", RecordingRenderer)
    status = collage_image_prep.main([
        str(first), str(second), "--output", str(tmp_path / "out.png"), "--completed", "70",
        "--achievements", str(tmp_path / "620.json"), str(tmp_path / "730.json")
    ])
    
    assert status == 0
    assert seen["completed"] == {70, 620}


def test_command_line_missing_achievement_file(tmp_path, accounts):
    first, second, covers = accounts
    status = collage_image_prep.main([str(first), "--achievements", str(tmp_path / "440.json")])
    assert status == 1


def test_command_line_missing_library(tmp_path):
    assert collage_image_prep.main([str(tmp_path / "nope.json")]) == 1


def test_log_project(tmp_path):
    log_path = tmp_path / "run.log"
    log_project(
        log_path=log_path,
        project_name="demo",
        timestamp=datetime(2024, 5, 1, 12, 30, 0),
        layout_mode="freerect",
        num_games=10,
        images_placed=8,
        games_dropped=2,
        output_path=Path("demo.png"),
        final_size=(1100, 1920),
        process_time=0.5,
        covers_missing=3
    )
    content = log_path.read_text(encoding='utf-8')
    assert "Timestamp: 2024-05-01 12:30:00" in content
    assert "Games Dropped: 2" in content
    assert "Missing Covers: 3" in content
    assert "Placement Rate: 80.0%" in content
    assert "Final Status: PARTIAL" in content


def test_generated_filenames():
    assert re.fullmatch(r"demo_\d{8}_\d{6}_full\.log", generate_log_filename("demo"))
    assert generate_log_filename("demo", preview=True).endswith("_preview.log")
    assert generate_png_filename("demo", 12, (1100, 1920)) == "demo-12games-1100x1920.png"


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
