from flask import g, request


SENSITIVE_KEYS = {
    'password', 'token', 'secret', 'key', 'authorization',
    'auth', 'credential', 'api_key', 'access_token',
    'refresh_token', 'jwt', 'session', 'cookie', 'otp', 'code'
}

SENSITIVE_HEADERS = {
    'authorization', 'cookie', 'set-cookie', 'x-api-key', 'x-auth-token',
    'x-access-token', 'x-refresh-token', 'x-csrf-token'
}


def get_request_summary():
    """Get a summary of the current request for logging"""
    if not request:
        return None

    return {
        'method': request.method,
        'url': request.url,
        'path': request.path,
        'endpoint': request.endpoint,
        'remote_addr': request.remote_addr,
        'user_agent': request.headers.get('User-Agent'),
        'content_type': request.content_type,
        'content_length': request.content_length,
        'request_id': getattr(g, 'request_id', None)
    }


def sanitize_data(data, sensitive_keys=None):
    """Sanitize data by removing sensitive information"""
    if sensitive_keys is None:
        sensitive_keys = SENSITIVE_KEYS

    if isinstance(data, list):
        return [sanitize_data(item, sensitive_keys) for item in data]
    if not isinstance(data, dict):
        return data

    sanitized = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if any(sensitive in key_lower for sensitive in sensitive_keys):
            sanitized[key] = '***REDACTED***'
        elif isinstance(value, (dict, list)):
            sanitized[key] = sanitize_data(value, sensitive_keys)
        else:
            sanitized[key] = value

    return sanitized


def sanitize_headers(headers):
    """Filter out sensitive headers"""
    return {
        key: '***REDACTED***' if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }
