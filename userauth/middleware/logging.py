import json
import logging
import time
import traceback
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

ROOT_LOGGER = 'userauth'

logger = logging.getLogger('userauth.access')


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_obj = {
            'level': record.levelname,
            'time': self.formatTime(record, '%Y-%m-%d %H:%M:%S'),
            'logger': record.name,
        }
        if isinstance(record.msg, dict):
            log_obj.update(record.msg)
        else:
            log_obj['message'] = record.getMessage()
        if record.exc_info:
            log_obj['traceback'] = self.formatException(record.exc_info)
        return json.dumps(log_obj, ensure_ascii=False, default=str)


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """Attach the JSON handler to the package logger once."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper())
    root.propagate = False
    if not any(getattr(h, '_userauth', False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        handler._userauth = True
        root.addHandler(handler)
    return root


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get('X-Forwarded-For', '').split(',')[0].strip()
    return request.headers.get('X-Real-IP') or forwarded or (request.client.host if request.client else '')


def _username(request: Request) -> str:
    user = getattr(request.state, 'user', None)
    return getattr(user, 'email', '') if user else ''


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self.log_exception(request, e, start, time.perf_counter())
            raise

        self.log(request, response, start, time.perf_counter())
        return response

    @staticmethod
    def log(request: Request, response: Response, start: float, end: float):
        log_data = {
            'http_code': response.status_code,
            'username': _username(request),
            'user_ip': _client_ip(request),
            'request_method': request.method,
            'request_path': request.url.path,
            'request_duration_ms': round((end - start) * 1000, 2),
        }

        status_code = response.status_code
        if status_code >= 500:
            logger.error(msg=log_data)
        elif status_code >= 400:
            logger.warning(msg=log_data)
        else:
            logger.info(msg=log_data)

    @staticmethod
    def log_exception(request: Request, exception: Exception, start: float, end: float):
        log_data = {
            'http_code': 500,
            'username': _username(request),
            'user_ip': _client_ip(request),
            'request_method': request.method,
            'request_path': request.url.path,
            'request_duration_ms': round((end - start) * 1000, 2),
            'exception': str(exception),
            'exception_type': type(exception).__name__,
            'traceback': traceback.format_exc(),
        }
        logger.error(msg=log_data)
