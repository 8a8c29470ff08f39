"""Attendee badge rendering: QR + name + attendee type on an 80x50 mm PDF.

The card is laid out at 302x189 logical pixels and rendered at 3x. The QR
code is 110 logical pixels wide with error correction H and a 2-module
quiet zone. The rendered image fills a landscape 80x50 mm PDF page.
"""

import os
import logging

import qrcode
from fpdf import FPDF
from PIL import Image, ImageDraw, ImageFont

from core.storage import storage_service

logger = logging.getLogger('hsaps.submissions.badge_service')

SCALE = 3
BADGE_WIDTH = 302
BADGE_HEIGHT = 189
PADDING = 3
QR_SIZE = 110
QR_BORDER_MODULES = 2
NAME_FONT_SIZE = 14
TYPE_FONT_SIZE = 13
NAME_COLOR = '#000000'
TYPE_COLOR = '#4A5568'
BORDER_COLOR = '#E2E8F0'

PDF_WIDTH_MM = 80
PDF_HEIGHT_MM = 50

BADGE_FOLDER = 'badges'

# TTF font search paths (Linux + macOS fallbacks)
_FONT_SEARCH = {
    'regular': [
        '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
        '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
        '/Library/Fonts/Arial Unicode.ttf',
    ],
    'bold': [
        '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
        '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf',
        '/Library/Fonts/Arial Bold.ttf',
    ],
}


def _find_font(style='regular'):
    for path in _FONT_SEARCH.get(style, []):
        if os.path.exists(path):
            return path
    return None


def _load_font(style, size):
    path = _find_font(style)
    if path:
        return ImageFont.truetype(path, size)
    logger.debug('No TTF font found for %s, using Pillow default', style)
    return ImageFont.load_default(size=size)


def qr_content(submission):
    """attendance_id|full_name|phone|email|attendee_type, empty parts dropped."""
    parts = [submission.get(k) for k in ('attendance_id', 'full_name', 'phone', 'email', 'attendee_type')]
    return '|'.join(str(p) for p in parts if p)


def render_qr(content, size_px):
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_H,
                       box_size=10, border=QR_BORDER_MODULES)
    qr.add_data(content)
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white').get_image().convert('RGB')
    return img.resize((size_px, size_px), Image.NEAREST)


def _wrap(draw, text, font, max_width):
    """Greedy word wrap to max_width pixels."""
    words = (text or '').split()
    lines, current = [], ''
    for word in words:
        candidate = f'{current} {word}'.strip()
        if draw.textlength(candidate, font=font) <= max_width or not current:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def render_badge_image(submission):
    """Badge as a PIL image at SCALE x the logical size."""
    s = SCALE
    width, height = BADGE_WIDTH * s, BADGE_HEIGHT * s
    img = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(img)
    draw.rectangle([0, 0, width - 1, height - 1], outline=BORDER_COLOR, width=s)

    qr_px = QR_SIZE * s
    qr_top = (PADDING + 1) * s
    img.paste(render_qr(qr_content(submission), qr_px), ((width - qr_px) // 2, qr_top))

    text_left = (PADDING + 8) * s
    text_width = width - 2 * text_left
    y = qr_top + qr_px + 3 * s + 4 * s

    name_font = _load_font('bold', NAME_FONT_SIZE * s)
    line_height = int(NAME_FONT_SIZE * 1.15 * s)
    for line in _wrap(draw, submission.get('full_name') or '', name_font, text_width):
        line_w = draw.textlength(line, font=name_font)
        draw.text(((width - line_w) / 2, y), line, font=name_font, fill=NAME_COLOR)
        y += line_height
    y += 6 * s

    type_font = _load_font('regular', TYPE_FONT_SIZE * s)
    attendee_type = submission.get('attendee_type') or ''
    type_w = draw.textlength(attendee_type, font=type_font)
    draw.text(((width - type_w) / 2, y), attendee_type, font=type_font, fill=TYPE_COLOR)
    return img


def render_badge_pdf(submission) -> bytes:
    """Landscape 80x50 mm PDF with the badge image filling the page."""
    image = render_badge_image(submission)
    pdf = FPDF(orientation='L', unit='mm', format=(PDF_HEIGHT_MM, PDF_WIDTH_MM))
    pdf.set_auto_page_break(False)
    pdf.set_margin(0)
    pdf.add_page()
    pdf.image(image, x=0, y=0, w=PDF_WIDTH_MM, h=PDF_HEIGHT_MM)
    return bytes(pdf.output())


def badge_filename(submission):
    name = '_'.join((submission.get('full_name') or '').split())
    return f'Badge_{submission.get("attendance_id")}_{name}.pdf'


def generate_and_store(submission) -> str:
    """Render the badge PDF and upload it under event_assets/badges. Returns the public URL.

    Every call produces a new file.
    """
    pdf_bytes = render_badge_pdf(submission)
    url = storage_service.upload(pdf_bytes, badge_filename(submission), BADGE_FOLDER,
                                 content_type='application/pdf')
    logger.info(f'Badge generated for submission {submission.get("id")}: {url}')
    return url
