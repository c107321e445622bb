import io
from datetime import datetime

from PIL import Image, ImageDraw, ImageFont

WIDTH, HEIGHT = 1754, 1240

PRIMARY_COLOR = (74, 111, 252)
BORDER_ACCENT = (139, 179, 255)
TEXT_COLOR = (26, 26, 26)
MUTED_COLOR = (102, 102, 102)

FONT_DIR = "/usr/share/fonts/truetype/dejavu"


def _load_fonts():
    try:
        return {
            "title": ImageFont.truetype(f"{FONT_DIR}/DejaVuSans-Bold.ttf", 84),
            "subtitle": ImageFont.truetype(f"{FONT_DIR}/DejaVuSans.ttf", 42),
            "name": ImageFont.truetype(f"{FONT_DIR}/DejaVuSans-Bold.ttf", 64),
            "text": ImageFont.truetype(f"{FONT_DIR}/DejaVuSans.ttf", 34),
            "small": ImageFont.truetype(f"{FONT_DIR}/DejaVuSans.ttf", 26),
        }
    except OSError:
        default = ImageFont.load_default()
        return dict.fromkeys(("title", "subtitle", "name", "text", "small"), default)


def render_certificate_png(certificate: dict, verify_base_url: str) -> bytes:
    """Landscape certificate of completion as PNG bytes"""
    img = Image.new("RGB", (WIDTH, HEIGHT), color="white")
    draw = ImageDraw.Draw(img)
    fonts = _load_fonts()

    draw.rectangle([0, 0, WIDTH - 1, HEIGHT - 1], outline=PRIMARY_COLOR, width=36)
    draw.rectangle([56, 56, WIDTH - 57, HEIGHT - 57], outline=BORDER_ACCENT, width=2)

    def centered(text, font, y, fill):
        bbox = draw.textbbox((0, 0), text, font=font)
        draw.text(((WIDTH - (bbox[2] - bbox[0])) / 2, y), text, fill=fill, font=font)

    issued = certificate.get("issuedDate")
    issued_text = issued.strftime("%B %d, %Y") if isinstance(issued, datetime) else str(issued or "")

    centered("Certificate of Completion", fonts["title"], 170, TEXT_COLOR)
    centered("This is to certify that", fonts["subtitle"], 300, PRIMARY_COLOR)
    centered(certificate.get("userName", ""), fonts["name"], 400, TEXT_COLOR)
    draw.line([(WIDTH // 2 - 300, 490), (WIDTH // 2 + 300, 490)], fill=PRIMARY_COLOR, width=2)
    centered("has successfully completed the course", fonts["text"], 530, TEXT_COLOR)
    centered(certificate.get("courseName", ""), fonts["name"], 600, PRIMARY_COLOR)
    centered(f"Awarded on {issued_text}", fonts["small"], 730, MUTED_COLOR)
    centered(f"Certificate ID: {certificate['certificateId']}", fonts["small"], 775, MUTED_COLOR)

    # Signature blocks
    for x_center, label, caption in (
        (WIDTH // 4 + 80, "Platform Signature", None),
        (3 * WIDTH // 4 - 80, certificate.get("instructorName", "Course Instructor"), "Instructor"),
    ):
        draw.line([(x_center - 220, 920), (x_center + 220, 920)], fill=TEXT_COLOR, width=2)
        bbox = draw.textbbox((0, 0), label, font=fonts["text"])
        draw.text((x_center - (bbox[2] - bbox[0]) / 2, 940), label, fill=TEXT_COLOR, font=fonts["text"])
        if caption:
            bbox = draw.textbbox((0, 0), caption, font=fonts["small"])
            draw.text((x_center - (bbox[2] - bbox[0]) / 2, 990), caption, fill=MUTED_COLOR, font=fonts["small"])

    centered(f"Verified at {verify_base_url}/verify/{certificate['certificateId']}", fonts["small"], 1090, MUTED_COLOR)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
