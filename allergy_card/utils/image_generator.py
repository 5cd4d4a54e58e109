from io import BytesIO
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from allergy_card.utils.normalizer import ALLERGENS, collapse_whitespace

Point = Tuple[int, int]


class TemplateAssetError(RuntimeError):
    """The language template image is missing or unreadable"""


# All coordinates below are in the space of a 1050x600 template and are
# scaled to the real template size at render time.
REFERENCE_SIZE = (1050, 600)

MARKER_LAYOUT: Mapping[str, Point] = MappingProxyType({
    "eggs": (170, 250),
    "dairy": (520, 250),
    "peanuts": (870, 250),
    "tree_nuts": (170, 380),
    "shellfish": (520, 380),
    "soy": (870, 380),
})

NAME_BASELINE_Y = 95
NAME_FONT_SIZE = 72
MARKER_SIZE = 64
CONTACT_X = 125
CONTACT_BOTTOM_OFFSET = 45
CONTACT_FONT_SIZE = 40
MIN_FONT_SIZE = 16

NAME_COLOR = "#111111"
MARKER_COLOR = "#111111"
CONTACT_COLOR = "#FFFFFF"  # sits on the template's red bottom bar


def scale_point(point: Point, size: Tuple[int, int]) -> Point:
    """Map a reference-space point onto a template of the given size"""
    x, y = point
    width, height = size
    return (
        round(x * width / REFERENCE_SIZE[0]),
        round(y * height / REFERENCE_SIZE[1]),
    )


def _scale_length(length: int, size: Tuple[int, int]) -> int:
    ratio = min(size[0] / REFERENCE_SIZE[0], size[1] / REFERENCE_SIZE[1])
    return max(1, round(length * ratio))


def marker_positions(
    allergens: Iterable[str],
    size: Tuple[int, int] = REFERENCE_SIZE,
    layout: Mapping[str, Point] = MARKER_LAYOUT,
) -> List[Tuple[str, Point]]:
    """
    Where X marks go for the given allergens.

    Allergens without a layout entry are ignored. Results follow layout
    order, not input order.
    """
    present = set(allergens)
    return [
        (allergen, scale_point(point, size))
        for allergen, point in layout.items()
        if allergen in present
    ]


def load_font(path: Optional[Union[str, Path]], size: int) -> ImageFont.FreeTypeFont:
    """TrueType font at the given size, or Pillow's bundled default"""
    if path:
        try:
            return ImageFont.truetype(str(path), size)
        except OSError:
            pass
    return ImageFont.load_default(size=size)


def load_template(path: Union[str, Path]) -> Image.Image:
    """Open a template image fully into memory"""
    path = Path(path)
    if not path.is_file():
        raise TemplateAssetError(f"Template image not found: {path}")
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise TemplateAssetError(f"Template image unreadable: {path} ({e})") from e


def _fit_font(draw, text, font_path, size, max_width):
    """Largest font (down to MIN_FONT_SIZE) that keeps text within max_width"""
    font = load_font(font_path, size)
    while size > MIN_FONT_SIZE and draw.textlength(text, font=font) > max_width:
        size -= 2
        font = load_font(font_path, size)
    return font


def draw_marker(draw: ImageDraw.ImageDraw, center: Point, size: int, fill: str = MARKER_COLOR) -> None:
    """Two thick crossing strokes centred on the point"""
    x, y = center
    half = size // 2
    stroke = max(2, size // 7)
    draw.line([(x - half, y - half), (x + half, y + half)], fill=fill, width=stroke)
    draw.line([(x - half, y + half), (x + half, y - half)], fill=fill, width=stroke)


def compose_card(
    template: Union[Image.Image, str, Path],
    name: str,
    allergens: Iterable[str],
    emergency_line: str,
    bold_font_path: Optional[Union[str, Path]] = None,
    regular_font_path: Optional[Union[str, Path]] = None,
) -> bytes:
    """
    Draws the dynamic overlay onto a language template.

    Layers, in order:
    - the template as background
    - the name, uppercased and centred near the top
    - one X mark per present allergen at its fixed layout position
    - the emergency-contact line, left aligned on the bottom bar

    Args:
        template: Template image or path to it
        name: Display name (may be empty)
        allergens: Allergen tags; tags without a layout position are skipped
        emergency_line: Localized label plus contact name and phone
        bold_font_path: TTF for the name and marks
        regular_font_path: TTF for the contact line (falls back to the bold font)

    Returns:
        PNG bytes (RGB)
    """
    if not isinstance(template, Image.Image):
        template = load_template(template)

    size = template.size
    width, height = size
    canvas = Image.new("RGBA", size, "white")
    canvas.alpha_composite(template.convert("RGBA"))
    draw = ImageDraw.Draw(canvas)

    # Name (title)
    title = collapse_whitespace(name).upper()
    if title:
        margin = _scale_length(40, size)
        font = _fit_font(draw, title, bold_font_path, _scale_length(NAME_FONT_SIZE, size), width - 2 * margin)
        draw.text(
            (width / 2, height * NAME_BASELINE_Y / REFERENCE_SIZE[1]),
            title,
            fill=NAME_COLOR,
            font=font,
            anchor="ms",
        )

    # Allergen X marks
    mark_size = _scale_length(MARKER_SIZE, size)
    for _, point in marker_positions(allergens, size):
        draw_marker(draw, point, mark_size)

    # Contact line on the bottom bar
    contact = collapse_whitespace(emergency_line)
    if contact:
        x = round(width * CONTACT_X / REFERENCE_SIZE[0])
        y = height - _scale_length(CONTACT_BOTTOM_OFFSET, size)
        font = _fit_font(
            draw,
            contact,
            regular_font_path or bold_font_path,
            _scale_length(CONTACT_FONT_SIZE, size),
            width - x - _scale_length(20, size),
        )
        draw.text((x, y), contact, fill=CONTACT_COLOR, font=font, anchor="ls")

    buffer = BytesIO()
    canvas.convert("RGB").save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def draw_placeholder_template(
    labels: Mapping[str, str],
    title: str,
    size: Tuple[int, int] = REFERENCE_SIZE,
    font_path: Optional[Union[str, Path]] = None,
) -> Image.Image:
    """
    Plain template with the standard layout: a labelled box per allergen and
    a dark red contact bar along the bottom.
    """
    width, height = size
    img = Image.new("RGB", size, color="white")
    draw = ImageDraw.Draw(img)

    # Header band behind the name
    draw.rectangle([(0, 0), (width, _scale_length(130, size))], fill="#FDECEA")

    bar_top = height - _scale_length(95, size)
    draw.rectangle([(0, bar_top), (width, height)], fill="#B71C1C")

    box = _scale_length(MARKER_SIZE + 24, size)
    label_font = load_font(font_path, _scale_length(30, size))
    small_font = load_font(font_path, _scale_length(22, size))

    for allergen in ALLERGENS:
        x, y = scale_point(MARKER_LAYOUT[allergen], size)
        half = box // 2
        draw.rectangle([(x - half, y - half), (x + half, y + half)], outline="#333333", width=3)
        draw.text((x + half + _scale_length(16, size), y), labels.get(allergen, allergen),
                  fill="#333333", font=label_font, anchor="lm")

    if title:
        draw.text((width / 2, _scale_length(160, size)), title, fill="#B71C1C", font=small_font, anchor="mm")

    return img
