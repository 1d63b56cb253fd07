from __future__ import annotations

from dataclasses import dataclass

from typing import Optional, List

# Import shapes for type hints only
from square_engine import GeneratedPuzzle


# -----------------------------------------------------------------------------
# Simple logger hook (optional; mirrors square_engine)
# -----------------------------------------------------------------------------
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


@dataclass
class Appearance:
    """
    Visual settings used by the SVG renderer.
    Keep this in sync with your UI fields.
    """
    # Board
    board_bg_color: str = "#FFFFFF"
    cell_line_color: str = "#000000"
    cell_line_thickness: float = 1.0

    # Tiles (puzzle view draws the bag as rounded tiles)
    tile_fill_color: str = "#F4E3C1"
    tile_stroke_color: str = "#8A6D3B"
    tile_corner_radius: float = 6.0
    tile_gap: int = 6

    # Letters
    grid_font_family: str = "Arial"
    grid_font_size: int = 28
    grid_font_bold: bool = True
    grid_font_color: str = "#000000"

    # Solution marking (row + column of a caller-chosen index)
    solution_mark_color: str = "#FFF2A8"
    solution_mark_opacity: float = 0.8

    # Caption under the board (e.g. the day or the level)
    caption_font_family: str = "Arial"
    caption_font_size: int = 14
    caption_font_color: str = "#000000"

    # Border
    add_border: bool = False
    border_thickness: float = 2.0
    border_color: str = "#000000"
    # Distance of border rectangle to the board (px)
    border_distance: float = 2.0


# -----------------------------------------------------------------------------
# Tiny helper to build safe SVG text (no external lib, very basic)
# -----------------------------------------------------------------------------
def _esc(s: str) -> str:
    return (
        str(s).replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _layout(n: int, appearance: Appearance, caption: Optional[str]):
    """Size math shared by both views: cell, pad, board size, total size."""
    cell = max(12, int(appearance.grid_font_size * 1.6))
    pad = int(cell * 0.4)
    board = n * cell
    caption_h = int(appearance.caption_font_size * 1.6) + pad if caption else 0
    total_w = board + pad * 2
    total_h = board + caption_h + pad * 2
    return cell, pad, board, total_w, total_h


def _open_svg(out: List[str], total_w: int, total_h: int) -> None:
    out.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{total_w}" height="{total_h}" '
        f'viewBox="0 0 {total_w} {total_h}">'
    )


def _border(out: List[str], appearance: Appearance, pad: int, board: int) -> None:
    # Optional border (around BOARD, offset by border_distance)
    if appearance.add_border:
        d = float(appearance.border_distance or 0.0)
        out.append(
            f'<rect x="{pad - d}" y="{pad - d}" width="{board + 2 * d}" height="{board + 2 * d}" '
            f'fill="none" stroke="{appearance.border_color}" stroke-width="{appearance.border_thickness}" />'
        )


def _letters(out: List[str], rows: List[List[str]], appearance: Appearance, cell: int, pad: int) -> None:
    font_weight = "bold" if appearance.grid_font_bold else "normal"
    out.append(
        f'<g font-family="{_esc(appearance.grid_font_family)}" font-size="{appearance.grid_font_size}" '
        f'font-weight="{font_weight}" fill="{appearance.grid_font_color}">'
    )
    # Center letters in cells
    txt_dy = int(appearance.grid_font_size * 0.35)
    for r, row in enumerate(rows):
        for c, ch in enumerate(row):
            x = pad + c * cell + cell // 2
            y = pad + r * cell + cell // 2 + txt_dy
            out.append(f'<text x="{x}" y="{y}" text-anchor="middle">{_esc(ch.upper())}</text>')
    out.append('</g>')


def _caption(out: List[str], caption: Optional[str], appearance: Appearance, pad: int, board: int) -> None:
    if not caption:
        return
    x = pad + board // 2
    y = pad + board + pad + appearance.caption_font_size
    out.append(
        f'<text x="{x}" y="{y}" text-anchor="middle" font-family="{_esc(appearance.caption_font_family)}" '
        f'font-size="{appearance.caption_font_size}" fill="{appearance.caption_font_color}">{_esc(caption)}</text>'
    )


# -----------------------------------------------------------------------------
# Core renderers
# -----------------------------------------------------------------------------
def render_puzzle_svg(puzzle: GeneratedPuzzle, appearance: Appearance, caption: Optional[str] = None) -> str:
    """
    Draw the bag: n*n tiles in bag order, dealt row by row.
    The goal is clarity, not fancy style.
    """
    rows = puzzle.grid()
    n = puzzle.size
    cell, pad, board, total_w, total_h = _layout(n, appearance, caption)

    out: List[str] = []
    _open_svg(out, total_w, total_h)
    _border(out, appearance, pad, board)

    out.append(
        f'<rect x="{pad}" y="{pad}" width="{board}" height="{board}" '
        f'fill="{appearance.board_bg_color}" stroke="none" />'
    )

    gap = max(0, min(int(appearance.tile_gap), cell // 3))
    half = gap / 2.0
    radius = appearance.tile_corner_radius
    for r in range(n):
        for c in range(n):
            x = pad + c * cell + half
            y = pad + r * cell + half
            out.append(
                f'<rect x="{x:.1f}" y="{y:.1f}" width="{cell - gap}" height="{cell - gap}" '
                f'rx="{radius}" ry="{radius}" fill="{appearance.tile_fill_color}" '
                f'stroke="{appearance.tile_stroke_color}" stroke-width="{appearance.cell_line_thickness}" />'
            )

    _letters(out, rows, appearance, cell, pad)
    _caption(out, caption, appearance, pad, board)

    out.append('</svg>')
    return "\n".join(out)


def render_solution_svg(
    puzzle: GeneratedPuzzle,
    appearance: Appearance,
    highlight_index: Optional[int] = None,
    caption: Optional[str] = None,
) -> str:
    """
    Solution SVG:
      - Draw the solved square on a ruled grid.
      - If highlight_index is given, fill that row AND that column
        (row i == column i, so they mark the same word twice).
    """
    rows = [list(r) for r in puzzle.solution]
    n = puzzle.size
    cell, pad, board, total_w, total_h = _layout(n, appearance, caption)

    out: List[str] = []
    _open_svg(out, total_w, total_h)
    _border(out, appearance, pad, board)

    out.append(
        f'<rect x="{pad}" y="{pad}" width="{board}" height="{board}" '
        f'fill="{appearance.board_bg_color}" stroke="none" />'
    )

    # --- Highlights behind letters ---
    if highlight_index is not None:
        if 0 <= highlight_index < n:
            for r in range(n):
                for c in range(n):
                    if r == highlight_index or c == highlight_index:
                        x = pad + c * cell + 1
                        y = pad + r * cell + 1
                        out.append(
                            f'<rect x="{x}" y="{y}" width="{cell-2}" height="{cell-2}" '
                            f'fill="{appearance.solution_mark_color}" '
                            f'fill-opacity="{appearance.solution_mark_opacity}" stroke="none" />'
                        )
        else:
            _log(f"render: highlight index {highlight_index} outside 0..{n - 1}, ignored")

    # --- Grid lines ---
    stroke = appearance.cell_line_color
    sw = appearance.cell_line_thickness
    for c in range(n + 1):
        x = pad + c * cell
        out.append(f'<line x1="{x}" y1="{pad}" x2="{x}" y2="{pad + board}" stroke="{stroke}" stroke-width="{sw}" />')
    for r in range(n + 1):
        y = pad + r * cell
        out.append(f'<line x1="{pad}" y1="{y}" x2="{pad + board}" y2="{y}" stroke="{stroke}" stroke-width="{sw}" />')

    _letters(out, rows, appearance, cell, pad)
    _caption(out, caption, appearance, pad, board)

    out.append('</svg>')
    return "\n".join(out)


def save_svg(svg_text: str, path: str) -> None:
    """Write an SVG string to disk."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(svg_text)
