#!/usr/bin/env python3
# This project was developed with assistance from AI tools.
"""Write a development copy of the CDCR 2311 template.

The production template is supplied by the facility and dropped at
PDF_TEMPLATE_PATH. For local work this script produces a one-page PDF with
one AcroForm widget per target name in FIELD_MAP, so submissions render
without the real form.

Usage (from the repo root, with the package installed):
  ./scripts/build_template.py                 # writes templates/CDCR_2311.pdf
  ./scripts/build_template.py -o /tmp/t.pdf
"""

import argparse
from pathlib import Path

import fitz  # pymupdf

from src.services.clearance_pdf import FIELD_MAP

CHECKBOXES = {
    "UsCitizen",
    "VisitedInmate",
    "FormerInmate",
    "RestrictedAccess",
    "FelonyConviction",
    "OnProbationParole",
    "PendingCharges",
}


def build(path: Path) -> None:
    doc = fitz.open()
    page = doc.new_page(width=612, height=792)
    page.insert_text((72, 60), "CDCR 2311 - Gate Clearance / Background Check Request", fontsize=13)
    page.insert_text((72, 245), "Signature:", fontsize=9)

    for index, mapping in enumerate(FIELD_MAP):
        column, row = divmod(index, 14)
        left = 72 + column * 240
        top = 340 + row * 28
        page.insert_text((left, top - 3), mapping.target, fontsize=7)
        widget = fitz.Widget()
        widget.field_name = mapping.target
        if mapping.target in CHECKBOXES:
            widget.field_type = fitz.PDF_WIDGET_TYPE_CHECKBOX
            widget.rect = fitz.Rect(left, top, left + 12, top + 12)
        else:
            widget.field_type = fitz.PDF_WIDGET_TYPE_TEXT
            widget.rect = fitz.Rect(left, top, left + 200, top + 16)
            widget.text_fontsize = 9
        page.add_widget(widget)

    path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(path, garbage=3, deflate=True)
    doc.close()
    print(f"Wrote {path} ({len(FIELD_MAP)} fields)")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(__file__).resolve().parents[1] / "templates" / "CDCR_2311.pdf",
    )
    build(parser.parse_args().output)


if __name__ == "__main__":
    main()
