import hashlib
import logging
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

from net_loginer.configs.common import MAX_MISREAD_RETRY, MAX_VERIFY_CODE_RETRY
from net_loginer.configs.web.param_schema import LoginModel, PageParams
from net_loginer.errors import CaptchaMisreadError
from net_loginer.model.auth_result import (
    AuthResult,
    CaptchaMisread,
    InvalidVerifyCode,
    RetryBudgetExhausted,
    Success,
    describe,
)
from net_loginer.model.credentials import Credentials
from net_loginer.remote.http_request import HTTPRequest
from net_loginer.view.console import console, mask
from net_loginer.view_model.auth_feedback import AuthFeedback

logger = logging.getLogger(__name__)

ARCHIVE_NAME = re.compile(r'(\d+)_')

IMAGE_SIGNATURES = (
    (b'\x89PNG\r\n\x1a\n', '.png'),
    (b'\xff\xd8\xff', '.jpg'),
    (b'GIF8', '.gif'),
    (b'BM', '.bmp'),
)


def image_extension(img_bytes: bytes) -> str:
    for magic, ext in IMAGE_SIGNATURES:
        if img_bytes.startswith(magic):
            return ext
    return '.bin'


@dataclass
class LoginAttemptContext:
    params: PageParams
    verify_code: str
    image: bytes


@dataclass
class AddressOutcome:
    address: str
    result: AuthResult
    attempts: int


class AuthFlow:
    """Portal login state machine for a single local address.

    Each attempt fetches fresh page params and a fresh captcha (both are
    single-use), solves the captcha, submits the form and interprets the
    answer. Only ``InvalidVerifyCode`` loops; everything else ends the address.
    """

    def __init__(
        self,
        client: HTTPRequest,
        solve_captcha: Callable[[bytes], str],
        credentials: Credentials,
        verify_code_length: Optional[int] = None,
        max_verify_code_retry: int = MAX_VERIFY_CODE_RETRY,
        max_misread_retry: int = MAX_MISREAD_RETRY,
        retry_delay: float = 1.0,
        save_captcha_dir: Optional[str] = None,
    ) -> None:
        self.client = client
        self.solve_captcha = solve_captcha
        self.credentials = credentials
        self.verify_code_length = verify_code_length
        self.max_verify_code_retry = max_verify_code_retry
        self.max_misread_retry = max_misread_retry
        self.retry_delay = retry_delay
        self.save_captcha_dir = save_captcha_dir
        self.feedback = AuthFeedback()

    def run(self, ip_address: str) -> AddressOutcome:
        max_attempts = self.max_verify_code_retry
        for attempt in range(1, max_attempts + 1):
            try:
                ctx = self.prepare(ip_address)
            except CaptchaMisreadError as e:
                logger.error('%s for %s', e, ip_address)
                return AddressOutcome(ip_address, CaptchaMisread(e.attempts), attempt)
            result = self.submit(ip_address, ctx)

            if isinstance(result, InvalidVerifyCode):
                self._save_captcha(ctx.image)
                logger.warning(
                    'Invalid verify code: %s, retrying... [%d/%d]',
                    ctx.verify_code, attempt, max_attempts,
                )
                if attempt < max_attempts and self.retry_delay:
                    time.sleep(self.retry_delay)
                continue

            if isinstance(result, Success):
                self._save_captcha(ctx.image, label=ctx.verify_code)
                logger.info('Login successful for IP address: %s', ip_address)
            else:
                logger.warning('%s (user %s)', describe(result), mask(self.credentials.user_id))
            return AddressOutcome(ip_address, result, attempt)

        logger.error('Verify code rejected %d times for %s', max_attempts, ip_address)
        return AddressOutcome(ip_address, RetryBudgetExhausted(max_attempts), max_attempts)

    def prepare(self, ip_address: str) -> LoginAttemptContext:
        """Fetch page params and captcha concurrently, then solve the captcha."""
        with console.status("[bold cyan]Fetching portal session...[/bold cyan]", spinner="dots"):
            with ThreadPoolExecutor(max_workers=2) as pool:
                params_future = pool.submit(self.client.request_page_params, ip_address)
                image_future = pool.submit(self.client.request_verify_code_img, ip_address)
                params = params_future.result()
                image = image_future.result()

        image, verify_code = self._solve(ip_address, image)
        return LoginAttemptContext(params=params, verify_code=verify_code, image=image)

    def _solve(self, ip_address: str, image: bytes):
        code = self.solve_captcha(image)
        misreads = 0
        while not self._plausible(code):
            misreads += 1
            self._save_captcha(image)
            if misreads > self.max_misread_retry:
                raise CaptchaMisreadError(misreads, code)
            logger.warning('Implausible verify code %r, fetching a new captcha', code)
            image = self.client.request_verify_code_img(ip_address)
            code = self.solve_captcha(image)

        logger.info('Verify code: %s', code)
        return image, code

    def _plausible(self, code: str) -> bool:
        if not code:
            return False
        return self.verify_code_length is None or len(code) == self.verify_code_length

    def submit(self, ip_address: str, ctx: LoginAttemptContext) -> AuthResult:
        login_model = LoginModel(
            user_name=self.credentials.user_id,
            user_pass=self.credentials.password,
            uaddress=ip_address,
            valid_code=ctx.verify_code,
            push_page_id=ctx.params.push_page_id,
            ssid=ctx.params.ssid,
        )
        with console.status("[bold cyan]Submitting login...[/bold cyan]", spinner="dots"):
            resp = self.client.submit_login_form(login_model.model_dump(by_alias=True))
        return self.feedback.parse(resp.content)

    def _save_captcha(self, img_bytes: bytes, label: Optional[str] = None) -> None:
        """Archive a captcha when ``save_captcha_dir`` is set.

        label=None   → rejected or misread (NNNNN_captcha_hash.ext)
        label='XXXX' → accepted by the portal (NNNNN_XXXX_hash.ext)

        The extension follows the image signature; files not named NNNNN_... are ignored.
        """
        if not self.save_captcha_dir:
            return
        os.makedirs(self.save_captcha_dir, exist_ok=True)
        img_hash = hashlib.md5(img_bytes).hexdigest()[:12]
        numbers = (ARCHIVE_NAME.match(f) for f in os.listdir(self.save_captcha_dir))
        next_num = max((int(m.group(1)) for m in numbers if m), default=0) + 1
        middle = label if label else 'captcha'
        filepath = os.path.join(self.save_captcha_dir, f'{next_num:05d}_{middle}_{img_hash}{image_extension(img_bytes)}')
        with open(filepath, 'wb') as f:
            f.write(img_bytes)
