import logging
from typing import Dict
from urllib.parse import parse_qs, urlparse

import requests
from requests.models import Response

from net_loginer.configs.common import (
    AC_IP,
    HTTP_HEADERS,
    HTTP_TIMEOUT,
    LOGIN_PATH,
    NET_AUTH_BASEURL,
    PAGE_PARAMS_PATH,
    VERIFY_CODE_IMG_PATH,
)
from net_loginer.configs.web.param_schema import PageParams
from net_loginer.errors import MissingField

logger = logging.getLogger(__name__)


class HTTPRequest:
    """Thin wrapper around a ``requests.Session`` for the three portal endpoints.

    Every call raises ``requests.HTTPError`` on a non-2xx status and never retries.
    """

    def __init__(
        self,
        base_url: str = NET_AUTH_BASEURL,
        timeout: float = HTTP_TIMEOUT,
        verify: bool = True,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.sess = requests.Session()
        self.sess.headers.update(HTTP_HEADERS)
        self.sess.verify = verify

    def close(self) -> None:
        self.sess.close()

    def _url(self, path: str) -> str:
        return f'{self.base_url}{path}'

    def request_page_params(self, ip_address: str) -> PageParams:
        resp = self.sess.get(
            self._url(PAGE_PARAMS_PATH),
            params={'uaddress': ip_address, 'ac-ip': AC_IP},
            timeout=self.timeout,
            allow_redirects=True,
        )
        resp.raise_for_status()
        params = parse_page_params(resp.url)
        logger.info('Get pushPageId: %r', params.push_page_id)
        logger.info('Get ssid: %r', params.ssid)
        return params

    def request_verify_code_img(self, ip_address: str) -> bytes:
        resp = self.sess.get(
            self._url(VERIFY_CODE_IMG_PATH),
            params={'uaddress': ip_address},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.content

    def submit_login_form(self, params: Dict[str, str]) -> Response:
        resp = self.sess.post(self._url(LOGIN_PATH), data=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp


def parse_page_params(url: str) -> PageParams:
    query = parse_qs(urlparse(url).query, keep_blank_values=True)
    for field in ('pushPageId', 'ssid'):
        if not query.get(field):
            raise MissingField(field)
    return PageParams(pushPageId=query['pushPageId'][0], ssid=query['ssid'][0])
