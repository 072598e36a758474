from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Dict, List

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from questions import TRAIT_ORDER, Reward, Trait
from scoring import FALLBACK_TITLES, PersonalityResult

BASE_DIR = Path(__file__).resolve().parent
FONT_DIR = BASE_DIR / "fonts"
PDF_FONT_FAMILY = "NotoSans"
PDF_FONT_REGULAR_PATH = FONT_DIR / "NotoSans-Regular.ttf"
PDF_FONT_BOLD_PATH = FONT_DIR / "NotoSans-Bold.ttf"

PDF_REPLACEMENTS = {
    "’": "'",
    "‘": "'",
    "“": '"',
    "”": '"',
    "–": "-",
    "—": "-",
    "…": "...",
    "🎉": "[Party] ",
    "🎒": "[Pack] ",
    "️": "",
}


def sanitize_for_pdf(text: str, unicode_font: bool = False) -> str:
    for src, dest in PDF_REPLACEMENTS.items():
        text = text.replace(src, dest)
    if unicode_font:
        return text
    # core fonts are latin-1 only; emoji and other glyphs are dropped
    return text.encode("latin-1", "ignore").decode("latin-1").strip()


def generate_result_card(
    username: str,
    result: PersonalityResult,
    items: List[Reward],
    scores: Dict[Trait, int],
) -> BytesIO:
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    base_text_color = (32, 37, 45)
    accent_color = (231, 76, 60)
    muted_color = (110, 116, 132)

    regular_family = "Helvetica"
    regular_style = ""
    bold_family = "Helvetica"
    bold_style = "B"
    unicode_font = False
    try:
        if PDF_FONT_REGULAR_PATH.exists():
            pdf.add_font(PDF_FONT_FAMILY, "", str(PDF_FONT_REGULAR_PATH))
            regular_family = bold_family = PDF_FONT_FAMILY
            bold_style = ""
            unicode_font = True
        if unicode_font and PDF_FONT_BOLD_PATH.exists():
            pdf.add_font(PDF_FONT_FAMILY, "B", str(PDF_FONT_BOLD_PATH))
            bold_style = "B"
    except RuntimeError:
        regular_family = bold_family = "Helvetica"
        regular_style = ""
        bold_style = "B"
        unicode_font = False

    def clean(text: str) -> str:
        return sanitize_for_pdf(text, unicode_font)

    pdf.set_title(f"{clean(username)}'s Starter Pack")
    pdf.set_author("Campus Starter Pack")
    pdf.set_text_color(*base_text_color)

    pdf.set_font(bold_family, bold_style, 18)
    pdf.cell(0, 10, clean(f"{username}'s Starter Pack"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.set_text_color(*accent_color)
    pdf.set_font(bold_family, bold_style, 15)
    title = clean(result.display_name) or FALLBACK_TITLES[result.key]
    pdf.cell(0, 9, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*base_text_color)

    if result.desc:
        pdf.set_font(regular_family, regular_style, 11)
        pdf.multi_cell(0, 6, clean(result.desc), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    if result.item_name:
        pdf.set_font(bold_family, bold_style, 12)
        pdf.set_fill_color(253, 237, 236)
        pdf.cell(0, 8, clean(result.item_label), fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font(regular_family, regular_style, 11)
        pdf.multi_cell(0, 6, clean(f"{result.item_name}: {result.item_desc}"), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(4)

    pdf.set_font(bold_family, bold_style, 13)
    pdf.cell(0, 8, "Trait scores", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font(regular_family, regular_style, 11)
    for trait in TRAIT_ORDER:
        label = clean(FALLBACK_TITLES[trait])
        pdf.cell(0, 6, f"{trait.value} - {label}: {scores.get(trait, 0)}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.set_font(bold_family, bold_style, 13)
    pdf.cell(0, 8, f"Items collected ({len(items)})", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font(regular_family, regular_style, 11)
    for number, item in enumerate(items, start=1):
        line = clean(f"{number}. {item.name}: {item.desc}")
        pdf.multi_cell(0, 6, line, align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        if item.extra_text:
            pdf.set_text_color(*muted_color)
            pdf.multi_cell(0, 6, clean(f"   {item.extra_text}"), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.set_text_color(*base_text_color)

    buffer = BytesIO()
    pdf.output(buffer)
    buffer.seek(0)
    return buffer
