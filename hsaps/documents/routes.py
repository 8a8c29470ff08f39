"""Event documents API routes."""
from flask import jsonify, request

from . import documents_bp
from .repositories import DocumentRepository
from .repositories.document_repository import DOCUMENT_FIELDS
from core.status import DocumentType
from core.storage import storage_service
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
)
from core.utils.listing import ListQuery

_repo = DocumentRepository()

PAGE_SIZE = 20
REQUIRED_MESSAGE = 'Tên tài liệu và tệp tin không được để trống.'
_TYPES = [t.value for t in DocumentType]


def _clean(data):
    cleaned = {}
    for key in DOCUMENT_FIELDS:
        if key in data:
            value = data[key]
            cleaned[key] = value.strip() if isinstance(value, str) else value
    if cleaned.get('type') and cleaned['type'] not in _TYPES:
        raise ValueError(f'Loại tài liệu không hợp lệ: {cleaned["type"]}')
    return cleaned


@documents_bp.route('/api/documents', methods=['GET'])
@permission_required('documents:view')
@handle_api_errors
def api_list_documents():
    query = ListQuery.from_args(request.args, filter_keys=('type',), page_size=PAGE_SIZE)
    rows, total = _repo.list_documents(query)
    body = query.envelope(rows, total, key='documents')
    body['success'] = True
    return jsonify(body)


@documents_bp.route('/api/documents/upload', methods=['POST'])
@permission_required('documents:create')
def api_upload_document_file():
    """Store the file under documents/; images double as their own thumbnail."""
    file = request.files.get('file')
    if not file or not file.filename:
        return error_response('Không có tệp được tải lên.')
    try:
        url = storage_service.upload(file.read(), file.filename, 'documents',
                                     content_type=file.mimetype)
    except storage_service.StorageError as e:
        return error_response(str(e))
    is_image = (file.mimetype or '').startswith('image/')
    return jsonify({'success': True, 'file_url': url, 'thumbnail_url': url if is_image else ''}), 201


@documents_bp.route('/api/documents', methods=['POST'])
@permission_required('documents:create')
@handle_api_errors
def api_create_document():
    data, error = get_json_or_error()
    if error:
        return error
    payload = {'type': DocumentType.OTHER.value}
    payload.update(_clean(data))
    if not payload.get('name') or not payload.get('file_url'):
        return error_response(REQUIRED_MESSAGE)
    return jsonify({'success': True, 'document': _repo.create(payload)}), 201


@documents_bp.route('/api/documents/<int:document_id>', methods=['PUT'])
@permission_required('documents:edit')
@handle_api_errors
def api_update_document(document_id):
    data, error = get_json_or_error()
    if error:
        return error
    payload = _clean(data)
    if ('name' in payload and not payload['name']) or ('file_url' in payload and not payload['file_url']):
        return error_response(REQUIRED_MESSAGE)
    document = _repo.update(document_id, payload)
    if not document:
        return error_response('Không tìm thấy tài liệu.', 404)
    return jsonify({'success': True, 'document': document})


@documents_bp.route('/api/documents/<int:document_id>', methods=['DELETE'])
@permission_required('documents:delete')
@handle_api_errors
def api_delete_document(document_id):
    if not _repo.delete(document_id):
        return error_response('Không tìm thấy tài liệu.', 404)
    return jsonify({'success': True})
