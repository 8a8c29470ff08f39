"""Local object storage.

Files live under STORAGE_ROOT/<bucket>/<folder>/<name> and are served at
STORAGE_PUBLIC_URL/<bucket>/<folder>/<name>. Upload names are
`{epoch_ms}_{random}.{ext}`; WebP images are re-encoded as JPEG (quality 90).
"""
import io
import os
import re
import secrets
import string
import time
import logging
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from PIL import Image, ImageOps

logger = logging.getLogger('hsaps.core.storage')

DEFAULT_BUCKET = 'event_assets'
STORAGE_ROOT = os.environ.get(
    'STORAGE_ROOT',
    os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'storage'),
)
STORAGE_PUBLIC_URL = os.environ.get('STORAGE_PUBLIC_URL', '/storage').rstrip('/')

MAX_FILE_SIZE = 25 * 1024 * 1024  # 25 MB
JPEG_QUALITY = 90
MAX_TRANSFORM_DIMENSION = 2500

IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}
DOCUMENT_EXTENSIONS = {'pdf', 'doc', 'docx', 'xls', 'xlsx', 'ppt', 'pptx', 'txt', 'csv', 'zip'}
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS
# Served inline; everything else is a download
INLINE_EXTENSIONS = IMAGE_EXTENSIONS | {'pdf'}

_SEGMENT = re.compile(r'^[A-Za-z0-9_-]+$')
_ALPHABET = string.ascii_lowercase + string.digits


class StorageError(Exception):
    pass


def _random_token(length=11):
    return ''.join(secrets.choice(_ALPHABET) for _ in range(length))


def _validate_segments(value, what):
    parts = [p for p in (value or '').split('/') if p]
    if not parts or not all(_SEGMENT.match(p) for p in parts):
        raise StorageError(f'Invalid {what}: {value}')
    return '/'.join(parts)


def _extension(filename):
    if not filename or '.' not in filename:
        return 'bin'
    return filename.rsplit('.', 1)[-1].lower()


def _is_webp(filename, content_type):
    return content_type == 'image/webp' or _extension(filename) == 'webp'


def webp_to_jpeg(file_bytes):
    """Re-encode a WebP image as JPEG at quality 90."""
    with Image.open(io.BytesIO(file_bytes)) as img:
        out = io.BytesIO()
        img.convert('RGB').save(out, format='JPEG', quality=JPEG_QUALITY)
        return out.getvalue()


def generate_name(filename, now_ms=None):
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f'{now_ms}_{_random_token()}.{_extension(filename)}'


def is_inline(path):
    return _extension(path) in INLINE_EXTENSIONS


def public_url(bucket, path):
    return f'{STORAGE_PUBLIC_URL}/{bucket}/{path}'


def resolve_path(bucket, path):
    """Absolute filesystem path for bucket/path; rejects anything outside the bucket."""
    bucket = _validate_segments(bucket, 'bucket')
    base_dir = os.path.realpath(os.path.join(STORAGE_ROOT, bucket))
    target = os.path.realpath(os.path.join(base_dir, path))
    if not target.startswith(base_dir + os.sep):
        logger.warning('Path traversal blocked: %s/%s', bucket, path)
        raise StorageError('Invalid path')
    return target


def upload(file_bytes, filename, folder, bucket=DEFAULT_BUCKET, content_type=None):
    """Store bytes under bucket/folder with a generated name. Returns the public URL."""
    if not file_bytes:
        raise StorageError('Empty file')
    if len(file_bytes) > MAX_FILE_SIZE:
        raise StorageError(f'File too large ({len(file_bytes) // (1024 * 1024)}MB). '
                           f'Max: {MAX_FILE_SIZE // (1024 * 1024)}MB')
    folder = _validate_segments(folder, 'folder')
    if _extension(filename) not in ALLOWED_EXTENSIONS:
        raise StorageError(f'File type not allowed: .{_extension(filename)}')

    name = generate_name(filename)
    if _is_webp(filename, content_type):
        try:
            file_bytes = webp_to_jpeg(file_bytes)
        except (OSError, ValueError) as e:
            raise StorageError(f'Could not convert WebP image: {e}')
        name = name.rsplit('.', 1)[0] + '.jpeg'

    rel_path = f'{folder}/{name}'
    target = resolve_path(bucket, rel_path)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, 'wb') as f:
        f.write(file_bytes)
    logger.info(f'Stored {len(file_bytes)} bytes at {bucket}/{rel_path}')
    return public_url(bucket, rel_path)


def transformed_url(url, width, height):
    """URL of the resized variant (width, height, resize=contain); None for empty input."""
    if not url:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        logger.warning(f'Invalid URL for transformation: {url}')
        return url
    query = dict(parse_qsl(parts.query))
    query.update({'width': str(width), 'height': str(height), 'resize': 'contain'})
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def render_contained(path, width, height):
    """Resize the image at `path` to fit inside width x height. Returns (bytes, mimetype)."""
    width = max(1, min(int(width), MAX_TRANSFORM_DIMENSION))
    height = max(1, min(int(height), MAX_TRANSFORM_DIMENSION))
    with Image.open(path) as img:
        fmt = img.format or 'PNG'
        resized = ImageOps.contain(img, (width, height))
        if fmt == 'JPEG' and resized.mode not in ('RGB', 'L'):
            resized = resized.convert('RGB')
        out = io.BytesIO()
        resized.save(out, format=fmt)
    return out.getvalue(), Image.MIME.get(fmt, 'application/octet-stream')
