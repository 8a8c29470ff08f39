"""Storage routes: authenticated upload and public file delivery."""
import os

from flask import jsonify, request, send_file, abort, Response

from . import storage_bp
from . import storage_service
from .storage_service import StorageError, DEFAULT_BUCKET
from core.utils.api_helpers import api_login_required, error_response


@storage_bp.route('/api/storage/upload', methods=['POST'])
@api_login_required
def api_upload():
    """Multipart upload: `file` plus the target `folder` (e.g. avatars, speakers/cv_url)."""
    file = request.files.get('file')
    folder = request.form.get('folder', '')
    if not file or not file.filename:
        return error_response('Không có tệp được tải lên.')
    try:
        url = storage_service.upload(file.read(), file.filename, folder,
                                     bucket=DEFAULT_BUCKET, content_type=file.mimetype)
    except StorageError as e:
        return error_response(str(e))
    return jsonify({'success': True, 'url': url}), 201


@storage_bp.route('/storage/<bucket>/<path:filename>', methods=['GET'])
def serve_file(bucket, filename):
    """Public file delivery; width/height/resize=contain return a resized image."""
    try:
        path = storage_service.resolve_path(bucket, filename)
    except StorageError:
        abort(404)
    if not os.path.isfile(path):
        abort(404)

    width = request.args.get('width', type=int)
    height = request.args.get('height', type=int)
    if width and height and request.args.get('resize', 'contain') == 'contain':
        try:
            data, mimetype = storage_service.render_contained(path, width, height)
            response = Response(data, mimetype=mimetype)
            response.headers['X-Content-Type-Options'] = 'nosniff'
            return response
        except OSError:
            # Not an image; fall through to the original bytes
            pass
    if storage_service.is_inline(path):
        response = send_file(path)
    else:
        response = send_file(path, mimetype='application/octet-stream', as_attachment=True)
    response.headers['X-Content-Type-Options'] = 'nosniff'
    return response
