# Crit Shared Web Helpers
# CORS, bearer auth and error responses shared by every Flask service

from flask import jsonify, request

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, DELETE, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization, X-Client-Info, Apikey'
}


class AuthError(Exception):
    pass


def enable_cors(app):
    """Answer every preflight with 200 and put CORS headers on every response"""

    @app.before_request
    def _preflight():
        if request.method == 'OPTIONS':
            return '', 200

    @app.after_request
    def _cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    return app


def error_response(message, status):
    return jsonify({'error': message}), status


def require_user(store):
    """Return the Supabase user for the request's bearer token.

    Raises AuthError when the header is missing or the token is rejected.
    """
    auth_header = request.headers.get('Authorization', '')
    if not auth_header:
        raise AuthError('Missing authorization')

    token = auth_header.replace('Bearer ', '', 1).strip()
    user = store.get_user(token)
    if not user:
        raise AuthError('Unauthorized')
    return user


def health_response(service, version):
    """Health check body shared by all services"""
    return jsonify({
        'status': 'healthy',
        'service': service,
        'version': version
    })
