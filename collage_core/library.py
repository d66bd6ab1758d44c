"""
Game library loading for Playtime Collage.
Parses owned-games and achievement payloads and merges several accounts.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Set

from .game_item import GameItem


logger = logging.getLogger(__name__)

ALBUM_URL_TEMPLATE = "https://steamcdn-a.akamaihd.net/steam/apps/{id}/library_600x900_2x.jpg"


def build_album_url(item_id: int) -> str:
    """Cover art URL for a game id."""
    return ALBUM_URL_TEMPLATE.format(id=item_id)


def parse_owned_games(payload) -> List[GameItem]:
    """
    Convert an owned-games response into game items.
    
    Args:
        payload: Decoded JSON of the form {"response": {"games": [...]}}
        
    Returns:
        Game items in payload order; malformed entries are skipped
    """
    response = payload.get("response") if isinstance(payload, dict) else None
    games = response.get("games") if isinstance(response, dict) else None
    if not isinstance(games, list):
        logger.warning("Owned games payload has no game list")
        return []
    
    items = []
    for entry in games:
        try:
            item_id = int(entry["appid"])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping game entry without a valid appid: {entry!r}")
            continue
        
        playtime = entry.get("playtime_forever") or 0
        try:
            playtime = int(playtime)
        except (TypeError, ValueError):
            logger.debug(f"Invalid playtime {playtime!r} for {item_id}, using 0")
            playtime = 0
        
        name = entry.get("name") or str(item_id)
        items.append(GameItem(id=item_id, name=str(name), weight=playtime))
    
    return items


def load_owned_games(path: Path) -> List[GameItem]:
    """
    Load an owned-games JSON file.
    
    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        payload = json.load(f)
    
    items = parse_owned_games(payload)
    logger.info(f"Loaded {len(items)} games from {path.name}")
    return items


def aggregate_libraries(libraries: Iterable[Sequence[GameItem]]) -> List[GameItem]:
    """
    Merge libraries from several accounts.
    
    Playtime is summed per game id; the first name seen is kept and games
    keep their first-seen order.
    """
    merged: Dict[int, GameItem] = {}
    for library in libraries:
        for item in library:
            previous = merged.get(item.id)
            if previous is None:
                merged[item.id] = item
            else:
                merged[item.id] = GameItem(id=previous.id, name=previous.name,
                                           weight=previous.weight + item.weight)
    return list(merged.values())


def parse_achievement_completion(payload) -> bool:
    """
    Check whether a player-achievements response shows every achievement unlocked.
    
    Games without achievements, private profiles and failed lookups all count
    as not completed.
    """
    stats = payload.get("playerstats") if isinstance(payload, dict) else None
    if not isinstance(stats, dict):
        return False
    if stats.get("success") not in (True, 1):
        return False
    
    achievements = stats.get("achievements")
    if not isinstance(achievements, list) or not achievements:
        return False
    
    for achievement in achievements:
        try:
            if int(achievement.get("achieved")) != 1:
                return False
        except (AttributeError, TypeError, ValueError):
            return False
    return True


def total_playtime(items: Sequence[GameItem]) -> int:
    """Total minutes played across items."""
    return sum(max(0, item.weight) for item in items)


def achievement_appid(payload, path: Path = None):
    """
    Game id an achievement payload belongs to.
    
    Looks for an ``appid`` at the top level or inside ``playerstats``, then
    falls back to a file named ``<appid>.json``. Returns None if none is found.
    """
    candidates = []
    if isinstance(payload, dict):
        candidates.append(payload.get("appid"))
        stats = payload.get("playerstats")
        if isinstance(stats, dict):
            candidates.append(stats.get("appid"))
    if path is not None:
        candidates.append(Path(path).stem)
    
    for candidate in candidates:
        if candidate is None:
            continue
        try:
            return int(candidate)
        except (TypeError, ValueError):
            continue
    return None


def load_completed_ids(paths: Iterable[Path]) -> Set[int]:
    """
    Read player-achievement files and collect ids of fully completed games.
    
    Raises:
        OSError: If a file cannot be read
        ValueError: If a file is not valid JSON
    """
    completed = set()
    for path in paths:
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
        
        item_id = achievement_appid(payload, path)
        if item_id is None:
            logger.warning(f"Skipping achievements file without a game id: {path.name}")
            continue
        if parse_achievement_completion(payload):
            completed.add(item_id)
    
    logger.info(f"{len(completed)} completed games from achievement files")
    return completed
