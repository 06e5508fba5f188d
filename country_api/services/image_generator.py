import logging
from pathlib import Path
from typing import Iterable, List, Optional

from PIL import Image, ImageDraw, ImageFont

from country_api.config import settings
from country_api.exceptions import RenderError

logger = logging.getLogger("country_api")

W, H = 1400, 800
FRAME_INSET = 40
TOP_N = 5

BG = (30, 41, 59)
BORDER = (51, 65, 85)
WHITE = (255, 255, 255)
LIGHT_GRAY = (203, 213, 225)
GREEN = (74, 222, 128)
GRAY = (148, 163, 184)


def _load_font(size: int, bold: bool = False):
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default(size=size)


def _centered_text(draw: ImageDraw.ImageDraw, y: int, text: str, fill, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    _text(draw, ((W - (bbox[2] - bbox[0])) // 2, y), text, fill=fill, font=font)


def _right_text(draw: ImageDraw.ImageDraw, x_right: int, y: int, text: str, fill, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    _text(draw, (x_right - (bbox[2] - bbox[0]), y), text, fill=fill, font=font)


def _text(draw: ImageDraw.ImageDraw, xy, text: str, fill, font):
    draw.text(xy, text, fill=fill, font=font)


def format_gdp(value: float) -> str:
    return f"${value:,.2f}"


def top_countries(countries: Iterable, limit: int = TOP_N) -> List:
    """Countries with a positive estimate, largest first, at most ``limit``."""
    ranked = [c for c in countries if (getattr(c, "estimated_gdp", 0) or 0) > 0]
    ranked.sort(key=lambda c: c.estimated_gdp, reverse=True)
    return ranked[:limit]


def generate_summary_image(countries, refreshed_at: Optional[str], path: Optional[Path] = None) -> Path:
    """Paint the refresh summary and cache it as a PNG, replacing any previous one.

    Layout: title, total number of stored countries, the top 5 countries by
    estimated GDP (rank, name, GDP) and the refresh timestamp as a footer.
    Raises ``RenderError`` when the cache directory or the file can't be written.
    """
    countries = list(countries)
    target = Path(path) if path is not None else settings.summary_image_path
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RenderError(f"Could not create cache directory {target.parent}: {exc}") from exc

    img = Image.new("RGB", (W, H), color=BG)
    draw = ImageDraw.Draw(img)
    draw.rectangle(
        [FRAME_INSET, FRAME_INSET, W - FRAME_INSET, H - FRAME_INSET],
        outline=BORDER,
        width=2,
    )

    font_title = _load_font(40, bold=True)
    font_header = _load_font(28, bold=True)
    font_body = _load_font(24)

    _centered_text(draw, 100, "Countries API Summary", fill=WHITE, font=font_title)
    _centered_text(draw, 180, f"Total Countries in DB: {len(countries)}", fill=LIGHT_GRAY, font=font_body)
    _centered_text(draw, 260, "Top 5 Countries by Estimated GDP (USD):", fill=WHITE, font=font_header)

    y = 330
    for rank, country in enumerate(top_countries(countries), start=1):
        _text(draw, (150, y), f"{rank}. {country.name}", fill=LIGHT_GRAY, font=font_body)
        _right_text(draw, W - 150, y, format_gdp(country.estimated_gdp), fill=GREEN, font=font_body)
        y += 60

    _centered_text(draw, H - 100, f"Last Refreshed: {refreshed_at or '(unknown)'}", fill=GRAY, font=font_body)

    try:
        img.save(str(target), format="PNG")
    except OSError as exc:
        raise RenderError(f"Could not write summary image {target}: {exc}") from exc
    logger.info("Summary image written to %s", target)
    return target
