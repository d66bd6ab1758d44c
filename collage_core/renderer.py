"""
Rendering engine for Playtime Collage.
Draws packed layouts with cover art, placeholders and badges.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Tuple
from PIL import Image, ImageDraw, ImageFont

from .game_item import PlacedItem
from .packer import PackingResult
from .logger import log_project
from .library import build_album_url, total_playtime


BACKGROUND_COLOR = '#1a1a1a'
HEADER_COLOR = '#0f1115'
PLACEHOLDER_COLOR = '#f97316'
COMPLETED_COLOR = '#ffd700'
BADGE_MIN_HOURS = 500
COVER_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.webp')


def header_height_for(canvas_height: int) -> int:
    """Info bar height: about 6% of the canvas, between 60 and 100 pixels."""
    return max(60, int(min(canvas_height * 0.06, 100) + 0.5))


class CollageRenderer:
    """Handles PNG rendering for Playtime Collage."""
    
    def __init__(self, cover_dir: Optional[Path] = None, completed_ids: Iterable[int] = (),
                 profile_name: str = ""):
        """
        Initialize the renderer.
        
        Args:
            cover_dir: Directory holding cover images named by game id
            completed_ids: Game ids drawn with a completion border
            profile_name: Name shown in the header bar
        """
        self.cover_dir = Path(cover_dir) if cover_dir else None
        self.completed_ids = set(completed_ids)
        self.profile_name = profile_name
        self.logger = logging.getLogger(__name__)
    
    def find_cover(self, item_id: int) -> Optional[Path]:
        """Locate the cover image for a game id."""
        if self.cover_dir is None:
            return None
        for extension in COVER_EXTENSIONS:
            path = self.cover_dir / f"{item_id}{extension}"
            if path.exists():
                return path
        return None
    
    def render(self, packing_result: PackingResult, output_path: Path,
               log_path: Optional[Path] = None, project_name: str = "collage") -> int:
        """
        Generate full resolution collage PNG.
        
        Args:
            packing_result: Packing layout result
            output_path: Output path for the PNG
            log_path: Path for the project log (skipped if None)
            project_name: Project name for logging
            
        Returns:
            Number of games drawn with a placeholder
        """
        start_time = datetime.now()
        output_path = Path(output_path)
        canvas_size = (packing_result.canvas_width, packing_result.canvas_height)
        num_games = packing_result.placed_count + packing_result.dropped_count
        
        self.logger.info(f"Generating collage: {output_path} ({canvas_size[0]}x{canvas_size[1]})")
        
        try:
            canvas, covers_missing = self._draw_collage(packing_result, 1.0)
            canvas.save(output_path, format='PNG')
        except Exception as e:
            self.logger.error(f"Error generating collage: {e}", exc_info=True)
            if log_path:
                log_project(
                    log_path=log_path,
                    project_name=project_name,
                    timestamp=start_time,
                    layout_mode=packing_result.mode.value,
                    num_games=num_games,
                    images_placed=0,
                    games_dropped=packing_result.dropped_count,
                    output_path=output_path,
                    final_size=(0, 0),
                    process_time=0,
                    error=str(e)
                )
            raise
        
        process_time = (datetime.now() - start_time).total_seconds()
        if log_path:
            log_project(
                log_path=log_path,
                project_name=project_name,
                timestamp=start_time,
                layout_mode=packing_result.mode.value,
                num_games=num_games,
                images_placed=packing_result.placed_count,
                games_dropped=packing_result.dropped_count,
                output_path=output_path,
                final_size=canvas_size,
                process_time=process_time,
                covers_missing=covers_missing
            )
        
        self.logger.info(f"Collage completed: {output_path} ({packing_result.placed_count} games placed, "
                         f"{covers_missing} placeholders)")
        return covers_missing
    
    def generate_preview(self, packing_result: PackingResult, output_path: Path,
                         max_dimension: int = 2000) -> Tuple[int, int]:
        """
        Generate a downscaled preview PNG.
        
        Args:
            packing_result: Packing layout result
            output_path: Output path for the preview
            max_dimension: Maximum pixel dimension for the preview
            
        Returns:
            Preview dimensions (width, height)
        """
        max_current = max(packing_result.canvas_width, packing_result.canvas_height)
        scale_factor = min(1.0, max_dimension / max_current)
        
        self.logger.info(f"Preview scale factor: {scale_factor:.3f}")
        
        canvas, _ = self._draw_collage(packing_result, scale_factor)
        canvas.save(output_path, format='PNG')
        self.logger.info(f"Preview saved: {output_path}")
        return canvas.size
    
    def _draw_collage(self, packing_result: PackingResult, scale_factor: float) -> Tuple[Image.Image, int]:
        """Draw every placement onto a new canvas."""
        width = max(1, int(packing_result.canvas_width * scale_factor))
        height = max(1, int(packing_result.canvas_height * scale_factor))
        
        canvas = Image.new('RGB', (width, height), color=BACKGROUND_COLOR)
        overlay = Image.new('RGBA', canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)
        overlay_draw = ImageDraw.Draw(overlay)
        
        header = packing_result.layout_spec.header_height
        if header > 0:
            self._draw_header(draw, packing_result, scale_factor)
        
        covers_missing = 0
        for placed in packing_result.placements:
            box = self._scaled_box(placed, scale_factor)
            if box[2] <= 0 or box[3] <= 0:
                continue
            
            if not self._draw_cover(canvas, placed, box):
                covers_missing += 1
                self._report_missing_cover(placed)
                self._draw_placeholder(draw, placed, box)
            
            if placed.id in self.completed_ids:
                self._draw_completed_border(draw, box)
            
            self._draw_hours_badge(overlay_draw, placed, box)
        
        canvas.paste(overlay, (0, 0), overlay)
        return canvas, covers_missing
    
    def _scaled_box(self, placed: PlacedItem, scale_factor: float) -> Tuple[int, int, int, int]:
        """Pixel box (x, y, width, height); edges rounded so neighbours stay flush."""
        left = int(round(placed.x * scale_factor))
        top = int(round(placed.y * scale_factor))
        right = int(round(placed.right * scale_factor))
        bottom = int(round(placed.bottom * scale_factor))
        return left, top, right - left, bottom - top
    
    def _draw_cover(self, canvas: Image.Image, placed: PlacedItem, box: Tuple[int, int, int, int]) -> bool:
        """Paste the game's cover cropped to fill its cell."""
        cover_path = self.find_cover(placed.id)
        if cover_path is None:
            return False
        
        x, y, width, height = box
        try:
            with Image.open(cover_path) as img:
                img = img.convert('RGB')
                canvas.paste(self._cover_fit(img, width, height), (x, y))
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not place cover {cover_path}: {e}")
            return False
        return True
    
    def _report_missing_cover(self, placed: PlacedItem):
        """Name the cover art to fetch for a game drawn as a placeholder."""
        url = build_album_url(placed.id)
        if self.cover_dir is None:
            self.logger.debug(f"No cover directory for {placed.name} ({placed.id}); art: {url}")
        else:
            self.logger.warning(f"Missing cover for {placed.name} ({placed.id}) in {self.cover_dir}; art: {url}")
    
    def _cover_fit(self, img: Image.Image, width: int, height: int) -> Image.Image:
        """
        Crop the centre of an image to the cell aspect ratio and resize it.
        
        Args:
            img: Source image
            width: Cell width
            height: Cell height
            
        Returns:
            Image exactly width x height
        """
        cell_aspect = width / height
        img_aspect = img.width / img.height
        
        src_x, src_y = 0.0, 0.0
        src_width, src_height = float(img.width), float(img.height)
        if img_aspect > cell_aspect:
            src_width = img.height * cell_aspect
            src_x = (img.width - src_width) / 2
        elif img_aspect < cell_aspect:
            src_height = img.width / cell_aspect
            src_y = (img.height - src_height) / 2
        
        return img.resize((width, height), Image.Resampling.LANCZOS,
                          box=(src_x, src_y, src_x + src_width, src_y + src_height))
    
    def _draw_placeholder(self, draw: ImageDraw.ImageDraw, placed: PlacedItem, box: Tuple[int, int, int, int]):
        """Fill a cell whose cover is unavailable and label it with the game name."""
        x, y, width, height = box
        draw.rectangle([x, y, x + width - 1, y + height - 1], fill=PLACEHOLDER_COLOR)
        
        max_chars = width // 8
        label = placed.name if len(placed.name) <= max_chars else f"{placed.name[:max_chars]}..."
        if not label:
            return
        
        font = self._font(14)
        self._draw_text(draw, (x + width / 2, y + height / 2), label, font, 'black')
    
    def _draw_hours_badge(self, draw: ImageDraw.ImageDraw, placed: PlacedItem, box: Tuple[int, int, int, int]):
        """Label heavily played games with their hours, a third up from the bottom."""
        hours = int(max(0, placed.weight) / 60 + 0.5)
        if hours < BADGE_MIN_HOURS:
            return
        
        x, y, width, height = box
        base = min(width, height)
        font_size = int(max(12, min(24, base * 0.08)) + 0.5)
        padding = int(max(4, min(12, base * 0.03)) + 0.5)
        margin = int(max(4, base * 0.02) + 0.5)
        
        text = f"{hours}h"
        font = self._font(font_size)
        text_width = int(draw.textlength(text, font=font)) + 1
        badge_width = text_width + padding * 2
        badge_height = int(font_size + padding * 1.2 + 0.5)
        
        bx = int(x + width / 2 - badge_width / 2)
        by = int(y + height * 0.66 - badge_height / 2)
        bx = min(max(bx, x + margin), x + width - margin - badge_width)
        by = min(max(by, y + margin), y + height - margin - badge_height)
        
        draw.rectangle([bx, by, bx + badge_width - 1, by + badge_height - 1], fill=(0, 0, 0, 153))
        self._draw_text(draw, (bx + badge_width / 2, by + badge_height / 2), text, font, (255, 255, 255, 255))
    
    def _draw_completed_border(self, draw: ImageDraw.ImageDraw, box: Tuple[int, int, int, int]):
        """Gold inset border for fully completed games."""
        x, y, width, height = box
        thickness = max(2, int(min(width, height) * 0.02 + 0.5))
        inset = thickness // 2 + 2
        if width <= inset * 2 or height <= inset * 2:
            return
        draw.rectangle(
            [x + inset, y + inset, x + width - inset - 1, y + height - inset - 1],
            outline=COMPLETED_COLOR,
            width=thickness
        )
    
    def _draw_header(self, draw: ImageDraw.ImageDraw, packing_result: PackingResult, scale_factor: float):
        """Info bar with profile name, game count and total hours."""
        header = int(packing_result.layout_spec.header_height * scale_factor)
        width = int(packing_result.canvas_width * scale_factor)
        if header <= 0:
            return
        draw.rectangle([0, 0, width - 1, header - 1], fill=HEADER_COLOR)
        
        games = [p.sized for p in packing_result.placements] + list(packing_result.dropped)
        total_hours = int(total_playtime(games) / 60 + 0.5)
        
        pad = max(4, int(10 * scale_factor))
        center_y = header / 2
        if self.profile_name:
            self._draw_text(draw, (pad * 2, center_y - 10 * scale_factor), self.profile_name,
                            self._font(max(8, int(18 * scale_factor))), 'white', center_x=False)
        stats = f"Games: {len({g.id for g in games})}  |  Total: {total_hours} hours"
        self._draw_text(draw, (pad * 2, center_y + 12 * scale_factor), stats,
                        self._font(max(8, int(14 * scale_factor))), 'white', center_x=False)
    
    def _font(self, size: int):
        """Default font at a given size."""
        return ImageFont.load_default(size=size)

    def _draw_text(self, draw: ImageDraw.ImageDraw, position: Tuple[float, float], text: str,
                   font, fill, center_x: bool = True):
        """Draw text vertically centred on a point (and horizontally unless center_x is False)."""
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = position[0] - (right + left) / 2 if center_x else position[0] - left
        y = position[1] - (bottom + top) / 2
        draw.text((x, y), text, fill=fill, font=font)
