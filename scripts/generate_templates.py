#!/usr/bin/env python3
"""
Generate Placeholder Card Templates
Draws one template-<lang>.png per supported language on the standard marker layout

Usage:
    python scripts/generate_templates.py --output assets
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from allergy_card.utils.i18n import LANGUAGE_PROFILES, get_allergen_label  # noqa: E402
from allergy_card.utils.image_generator import REFERENCE_SIZE, draw_placeholder_template  # noqa: E402
from allergy_card.utils.normalizer import ALLERGENS  # noqa: E402

TEMPLATE_TITLES = {
    "en": "I have food allergies",
    "fr": "J’ai des allergies alimentaires",
    "es": "Tengo alergias alimentarias",
    "pt": "Tenho alergias alimentares",
    "zh": "我有食物过敏",
}


def generate_templates(
    output_dir: Path,
    font_path: Optional[Path] = None,
    overwrite: bool = False,
) -> List[Path]:
    """Write the per-language templates; existing files are kept unless overwrite is set"""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []

    for code, profile in LANGUAGE_PROFILES.items():
        path = profile.template_path(output_dir)
        if path.exists() and not overwrite:
            logger.info(f"Keeping existing {path}")
            continue

        labels = {allergen: get_allergen_label(allergen, code) for allergen in ALLERGENS}
        img = draw_placeholder_template(
            labels,
            TEMPLATE_TITLES.get(code, ""),
            size=REFERENCE_SIZE,
            font_path=font_path,
        )
        img.save(path, format="PNG")
        written.append(path)
        logger.info(f"✓ Wrote {path}")

    return written


def main():
    parser = argparse.ArgumentParser(description="Generate placeholder allergy card templates")
    parser.add_argument(
        "--output", "-o",
        type=str,
        default="assets",
        help="Directory to write template PNGs into"
    )
    parser.add_argument(
        "--font",
        type=str,
        default=None,
        help="TTF font for labels (CJK-capable font needed for zh)"
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing templates"
    )

    args = parser.parse_args()
    written = generate_templates(
        Path(args.output),
        font_path=Path(args.font) if args.font else None,
        overwrite=args.overwrite,
    )
    logger.info(f"{len(written)} template(s) written to {args.output}")


if __name__ == "__main__":
    main()
