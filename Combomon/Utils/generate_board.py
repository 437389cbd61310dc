import cairo
import math
import textwrap
from typing import List, Optional, Tuple

from PIL import Image

from ..rules import check_team
from ..type import BOARD_SIZE, Round, TEAM_SIZE, TeamStatus, Token, evolution_text

# Colors (RGB values 0-1 for Cairo)
TYPE_COLORS = {
    'Bug': (0.55, 0.71, 0.20),
    'Fire': (0.93, 0.36, 0.18),
    'Grass': (0.30, 0.69, 0.31),
    'Electric': (0.98, 0.78, 0.10),
    'Water': (0.20, 0.52, 0.90),
}
DEFAULT_TYPE_COLOR = (0.6, 0.6, 0.6)

STATUS_COLORS = {
    TeamStatus.SATISFIED: (0.18, 0.66, 0.31),
    TeamStatus.UNSATISFIED: (0.85, 0.15, 0.20),
    TeamStatus.INCOMPLETE: (0.8, 0.8, 0.8),
}

BOARD_COLS = 4
BOARD_ROWS = 3


def _draw_text(ctx, text, x, y, size, color=(0.15, 0.15, 0.15), align="left", bold=False):
    """Draw a single line of text with its baseline at y; x is the left, center or right edge."""
    ctx.save()
    ctx.select_font_face("Sans", cairo.FONT_SLANT_NORMAL,
                         cairo.FONT_WEIGHT_BOLD if bold else cairo.FONT_WEIGHT_NORMAL)
    ctx.set_font_size(size)
    ctx.set_source_rgb(*color)
    if align == "center":
        x -= ctx.text_extents(text).width / 2
    elif align == "right":
        x -= ctx.text_extents(text).width
    ctx.move_to(x, y)
    ctx.show_text(text)
    ctx.restore()


def _draw_empty_slot(ctx, x, y, width, height, scale_factor):
    ctx.save()
    ctx.set_dash([6 * scale_factor, 4 * scale_factor])
    ctx.rectangle(x, y, width, height)
    ctx.set_source_rgb(0.7, 0.7, 0.72)
    ctx.set_line_width(1 * scale_factor)
    ctx.stroke()
    ctx.restore()


def _draw_card(ctx, card_x, card_y, token: Token, card_width, card_height, scale_factor,
               border: Optional[Tuple[float, float, float]] = None):
    """Draw one Combomon card: corners for the four attributes, name in the middle."""
    ctx.save()

    # Card background
    ctx.rectangle(card_x, card_y, card_width, card_height)
    ctx.set_source_rgb(1, 1, 1)
    ctx.fill_preserve()
    ctx.set_source_rgb(*(border or (0.8, 0.8, 0.8)))
    ctx.set_line_width((3 if border else 0.5) * scale_factor)
    ctx.stroke()

    # Type badge in the center
    cx = card_x + card_width / 2
    cy = card_y + card_height / 2 - 6 * scale_factor
    radius = min(card_width, card_height) * 0.18
    ctx.arc(cx, cy, radius, 0, 2 * math.pi)
    ctx.set_source_rgb(*TYPE_COLORS.get(token.type, DEFAULT_TYPE_COLOR))
    ctx.fill()
    _draw_text(ctx, token.type[:1], cx, cy + radius * 0.35, radius, color=(1, 1, 1),
               align="center", bold=True)

    small = 9 * scale_factor
    pad = 6 * scale_factor
    _draw_text(ctx, token.name, cx, cy + radius + 14 * scale_factor, 11 * scale_factor,
               align="center", bold=True)
    _draw_text(ctx, evolution_text(token.evolution), card_x + pad, card_y + pad + small, small)
    _draw_text(ctx, token.type, card_x + card_width - pad, card_y + pad + small, small, align="right")
    _draw_text(ctx, token.personality, card_x + pad, card_y + card_height - pad, small)
    _draw_text(ctx, token.region, card_x + card_width - pad, card_y + card_height - pad, small,
               align="right")

    ctx.restore()


def _draw_index_overlay(ctx, x, y, label):
    """Draw a semi-transparent index pill at the card's top-left corner."""
    font_size = 14
    ctx.save()
    ctx.set_font_size(font_size)
    text_extents = ctx.text_extents(label)

    pad = 5
    pill_width = text_extents.width + 2 * pad
    pill_height = font_size + pad
    pill_x = x - pill_width / 2
    pill_y = y - pill_height / 2

    radius = pill_height / 2
    ctx.new_path()
    ctx.arc(pill_x + radius, pill_y + radius, radius, math.pi / 2, 3 * math.pi / 2)
    ctx.arc(pill_x + pill_width - radius, pill_y + radius, radius, 3 * math.pi / 2, math.pi / 2)
    ctx.close_path()
    ctx.set_source_rgba(0, 0, 0, 0.7)
    ctx.fill()

    ctx.set_source_rgba(1, 1, 1, 1)
    ctx.move_to(pill_x + pad, pill_y + font_size)
    ctx.show_text(label)
    ctx.restore()


def generate_board_image(round_: Round,
                         card_width: int = 150,
                         card_height: int = 200,
                         margin: int = 16,
                         overlay_indices: bool = True) -> Image.Image:
    """Render a Round (board grid on top, three trainers below) to a PIL image.

    Board cards are labelled 1..12; trainer slots are labelled T-S (1-based).
    """
    scale_factor = min(card_width / 150, card_height / 200)
    trainer_width = TEAM_SIZE * card_width + (TEAM_SIZE + 1) * margin
    board_width = BOARD_COLS * card_width + (BOARD_COLS + 1) * margin
    canvas_width = max(board_width, len(round_.trainers) * (trainer_width + margin) + margin)
    request_height = int(60 * scale_factor)
    board_height = BOARD_ROWS * card_height + (BOARD_ROWS + 1) * margin
    canvas_height = board_height + request_height + card_height + 3 * margin

    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, canvas_width, canvas_height)
    ctx = cairo.Context(surface)
    ctx.set_source_rgb(0.92, 0.92, 0.94)
    ctx.paint()

    # Board grid
    for i, token in enumerate(round_.board[:BOARD_SIZE]):
        row, col = divmod(i, BOARD_COLS)
        x = margin + col * (card_width + margin)
        y = margin + row * (card_height + margin)
        if token is None:
            _draw_empty_slot(ctx, x, y, card_width, card_height, scale_factor)
        else:
            _draw_card(ctx, x, y, token, card_width, card_height, scale_factor)
        if overlay_indices:
            _draw_index_overlay(ctx, x, y, str(i + 1))

    # Trainers
    top = board_height + margin
    for t, trainer in enumerate(round_.trainers):
        left = margin + t * (trainer_width + margin)
        status = check_team(trainer)
        title = f"Trainer {t + 1}" + (f" - {trainer.character.name}" if trainer.character else "")
        _draw_text(ctx, title, left + margin, top + 12 * scale_factor, 12 * scale_factor, bold=True)
        lines: List[str] = textwrap.wrap(trainer.request, width=48)[:3]
        for n, line in enumerate(lines):
            _draw_text(ctx, line, left + margin, top + (26 + 12 * n) * scale_factor,
                       10 * scale_factor)
        slot_top = top + request_height
        for s, token in enumerate(trainer.team):
            x = left + margin + s * (card_width + margin)
            if token is None:
                _draw_empty_slot(ctx, x, slot_top, card_width, card_height, scale_factor)
            else:
                border = STATUS_COLORS[status] if status is not TeamStatus.INCOMPLETE else None
                _draw_card(ctx, x, slot_top, token, card_width, card_height, scale_factor, border)
            if overlay_indices:
                _draw_index_overlay(ctx, x, slot_top, f"{t + 1}-{s + 1}")

    # Convert Cairo surface to PIL Image
    surface.flush()
    buf = surface.get_data()
    img = Image.frombuffer("RGBA", (canvas_width, canvas_height), bytes(buf), "raw", "BGRA", 0, 1)
    return img.convert("RGB")
