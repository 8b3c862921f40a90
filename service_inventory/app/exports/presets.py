"""
Excel style presets rendered as openpyxl styles.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from .models import CellStyle

DEFAULT_PRESET = "default"

CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)
LEFT = Alignment(horizontal="left", vertical="center")


@dataclass(frozen=True)
class ExcelStyle:
    header_font: Font
    header_fill: Optional[PatternFill]
    header_border: Border
    data_font: Font
    data_border: Border
    alternate_fill: Optional[PatternFill]


def _hex(color: str) -> str:
    return color.lstrip("#").upper()


def solid_fill(color: str) -> PatternFill:
    return PatternFill(start_color=_hex(color), end_color=_hex(color), fill_type="solid")


def box_border(style: str, color: str) -> Border:
    side = Side(style=style, color=_hex(color))
    return Border(left=side, right=side, top=side, bottom=side)


def bottom_border(style: str, color: str) -> Border:
    return Border(bottom=Side(style=style, color=_hex(color)))


PRESETS: Dict[str, ExcelStyle] = {
    "default": ExcelStyle(
        header_font=Font(name="Calibri", bold=True, size=11, color="FFFFFF"),
        header_fill=solid_fill("#366092"),
        header_border=box_border("thin", "#000000"),
        data_font=Font(name="Calibri", size=10),
        data_border=box_border("thin", "#E0E0E0"),
        alternate_fill=solid_fill("#F8F9FA"),
    ),
    "corporate": ExcelStyle(
        header_font=Font(name="Calibri", bold=True, size=12, color="FFFFFF"),
        header_fill=solid_fill("#2C3E50"),
        header_border=box_border("medium", "#34495E"),
        data_font=Font(name="Calibri", size=10, color="2C3E50"),
        data_border=box_border("thin", "#BDC3C7"),
        alternate_fill=solid_fill("#ECF0F1"),
    ),
    "modern": ExcelStyle(
        header_font=Font(name="Calibri", bold=True, size=11, color="FFFFFF"),
        header_fill=solid_fill("#667EEA"),
        header_border=box_border("thin", "#764BA2"),
        data_font=Font(name="Calibri", size=10, color="4A5568"),
        data_border=box_border("thin", "#E2E8F0"),
        alternate_fill=solid_fill("#F7FAFC"),
    ),
    "minimal": ExcelStyle(
        header_font=Font(name="Calibri", bold=True, size=11, color="2D3748"),
        header_fill=None,
        header_border=bottom_border("medium", "#2D3748"),
        data_font=Font(name="Calibri", size=10, color="4A5568"),
        data_border=bottom_border("thin", "#E2E8F0"),
        alternate_fill=None,
    ),
    "colorful": ExcelStyle(
        header_font=Font(name="Calibri", bold=True, size=11, color="FFFFFF"),
        header_fill=solid_fill("#48BB78"),
        header_border=box_border("thin", "#38A169"),
        data_font=Font(name="Calibri", size=10, color="2D3748"),
        data_border=box_border("thin", "#C6F6D5"),
        alternate_fill=solid_fill("#F0FFF4"),
    ),
}


def get_preset(name: Optional[str]) -> Optional[ExcelStyle]:
    return PRESETS.get(name or DEFAULT_PRESET)


def resolve_style(preset: Optional[str],
                  header: Optional[CellStyle] = None,
                  data: Optional[CellStyle] = None) -> ExcelStyle:
    """Start from a preset and overlay any custom header/data style."""
    base = get_preset(preset) or PRESETS[DEFAULT_PRESET]
    header_font, header_fill, header_border = base.header_font, base.header_fill, base.header_border
    data_font, data_border = base.data_font, base.data_border

    if header is not None:
        header_font = _font(header, base.header_font)
        if header.background_color:
            header_fill = solid_fill(header.background_color)
        if header.border_color:
            header_border = box_border(header.border_style, header.border_color)
    if data is not None:
        data_font = _font(data, base.data_font)
        if data.border_color:
            data_border = box_border(data.border_style, data.border_color)

    return ExcelStyle(
        header_font=header_font,
        header_fill=header_fill,
        header_border=header_border,
        data_font=data_font,
        data_border=data_border,
        alternate_fill=base.alternate_fill,
    )


def _font(style: CellStyle, base: Font) -> Font:
    return Font(
        name=base.name,
        bold=style.bold or base.bold,
        size=style.font_size or base.size,
        color=_hex(style.font_color) if style.font_color else base.color,
    )
