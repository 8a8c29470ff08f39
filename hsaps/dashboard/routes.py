"""Dashboard API route."""
from flask import jsonify

from . import dashboard_bp
from .service import DashboardService
from core.utils.api_helpers import permission_required, handle_api_errors

_service = DashboardService()


@dashboard_bp.route('/api/dashboard', methods=['GET'])
@permission_required('dashboard:view')
@handle_api_errors
def api_dashboard():
    return jsonify({'success': True, **_service.overview()})
