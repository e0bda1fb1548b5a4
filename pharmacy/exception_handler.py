"""
统一异常处理器。

挂到 DRF 的 EXCEPTION_HANDLER setting 上。
所有响应（无论成功还是失败）客户端都能用同一套逻辑判断：
  response.type === 'validation_error' / 'policy' / 'storage' / 'error'  → 出问题了
  没有 type 字段  → 成功

统一错误响应格式：
{
    "type":    "validation_error" | "policy" | "storage",
    "code":    "REFILL_INELIGIBLE",
    "message": "Cannot refill: ...",
    "detail":  { ... }  // 可选
}
"""

import logging

from rest_framework.views import exception_handler as drf_default_handler
from rest_framework.exceptions import ValidationError as DRFValidationError, ParseError
from django.http import JsonResponse

from .exceptions import BaseAppException, StorageError

logger = logging.getLogger(__name__)


def build_error_body(exc):
    """BaseAppException → 统一格式的 dict。"""
    body = {
        'type': exc.type,
        'code': exc.code,
        'message': exc.message,
    }
    if exc.detail is not None:
        body['detail'] = exc.detail
    return body


def unified_exception_handler(exc, context):
    """
    DRF exception handler entry point.

    优先级：
    1. BaseAppException 及其子类 → 统一格式
    2. DRF 自带的 ValidationError / ParseError → 转成统一格式
    3. 其他异常 → 交给 DRF 默认处理
    """

    # --- 1. 我们自己的异常体系 ---
    if isinstance(exc, BaseAppException):
        if isinstance(exc, StorageError) and exc.http_status >= 500:
            logger.error("[API] storage failure code=%s: %s", exc.code, exc.message)
        return JsonResponse(build_error_body(exc), status=exc.http_status)

    # --- 2. DRF 自带的解析 / 校验错误 ---
    if isinstance(exc, (DRFValidationError, ParseError)):
        body = {
            'type': 'validation_error',
            'code': 'VALIDATION_ERROR',
            'message': 'Request validation failed',
            'detail': exc.detail,
        }
        return JsonResponse(body, status=400)

    # --- 3. 其他的交给 DRF 默认处理 ---
    return drf_default_handler(exc, context)
