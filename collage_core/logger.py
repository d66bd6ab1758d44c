"""
Logging system for Playtime Collage.
Handles run logging with timestamps and layout statistics.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple


def setup_logging(log_level: int = logging.INFO) -> None:
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def log_project(log_path: Path, project_name: str, timestamp: datetime,
                layout_mode: str, num_games: int, images_placed: int,
                games_dropped: int, output_path: Path, final_size: Tuple[int, int],
                process_time: float, covers_missing: int = 0,
                error: Optional[str] = None) -> None:
    """
    Log complete collage run information to file.
    
    Args:
        log_path: Path to log file
        project_name: Name of the project
        timestamp: Start timestamp
        layout_mode: Layout mode used
        num_games: Number of input games
        images_placed: Number of games placed on the canvas
        games_dropped: Number of games no free region could hold
        output_path: Path to output PNG
        final_size: Final canvas dimensions (width, height)
        process_time: Processing time in seconds
        covers_missing: Number of games drawn with a placeholder
        error: Error message if any
    """
    
    log_content = f"""Playtime Collage - Project Log
{'=' * 50}

Project Information:
    Project Name: {project_name}
    Timestamp: {timestamp.strftime('%Y-%m-%d %H:%M:%S')}

Input Parameters:
    Layout Mode: {layout_mode}
    Input Games: {num_games}

Layout Information:
    Games Placed: {images_placed}
    Games Dropped: {games_dropped}
    Missing Covers: {covers_missing}

Output Information:
    Output Path: {output_path.name}
    Canvas Size: {final_size[0]} x {final_size[1]} pixels
    Total Pixels: {final_size[0] * final_size[1]:,}

Process Information:
    Processing Time: {process_time:.2f} seconds
    Completion Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}

"""

    if error:
        log_content += f"""Error Information:
    Error: {error}
    Status: FAILED

"""

    placed_rate = (images_placed / num_games * 100) if num_games > 0 else 0
    status = "SUCCESS" if not error and images_placed == num_games else "PARTIAL" if images_placed > 0 else "FAILED"
    
    log_content += f"""Summary:
    Project: {project_name}
    Games Placed: {images_placed}/{num_games}
    Placement Rate: {placed_rate:.1f}%
    Final Status: {status}

"""

    try:
        with open(log_path, 'w', encoding='utf-8') as f:
            f.write(log_content)
    except OSError as e:
        logger = logging.getLogger(__name__)
        logger.error(f"Failed to write log file {log_path}: {e}")


def generate_log_filename(project_name: str, preview: bool = False) -> str:
    """
    Generate standardized log filename.
    
    Args:
        project_name: Name of the project
        preview: Whether the run produced a downscaled preview
        
    Returns:
        Formatted log filename
    """
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    suffix = 'preview' if preview else 'full'
    return f"{project_name}_{timestamp}_{suffix}.log"


def generate_png_filename(project_name: str, num_games: int, size: Tuple[int, int]) -> str:
    """
    Generate standardized collage filename.
    
    Args:
        project_name: Name of the project
        num_games: Number of games in the collage
        size: Canvas dimensions (width, height)
        
    Returns:
        Formatted PNG filename
    """
    return f"{project_name}-{num_games}games-{size[0]}x{size[1]}.png"
