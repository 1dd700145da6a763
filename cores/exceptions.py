import logging

from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Render API errors as {"error": ..., "code": ...} like the rest of the API."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        detail = data['detail']
        response.data = {
            'error': str(detail),
            'code': getattr(detail, 'code', None),
        }
    else:
        # Field validation errors keep their per-field shape
        response.data = {'error': 'Invalid request', 'code': 'invalid', 'fields': data}

    if response.status_code >= 500:
        logger.error(f"API error in {context.get('view').__class__.__name__}: {exc}")
    return response
