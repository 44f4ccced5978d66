"""
跨域预检

预检请求一律返回 200，允许的方法和头仍写在响应头里，由浏览器自行拦截。
"""
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

_DROPPED_HEADERS = {"content-length", "content-type"}


class PreflightCORSMiddleware(CORSMiddleware):
    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code == 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in _DROPPED_HEADERS
        }
        return Response(status_code=200, headers=headers)
