import os

NET_AUTH_BASEURL = 'https://net-auth.shanghaitech.edu.cn:19008'

PAGE_PARAMS_PATH = '/portal'
VERIFY_CODE_IMG_PATH = '/portalauth/verificationcode'
LOGIN_PATH = '/portalauth/login'

# Fixed protocol constants sent with every login form
AGREED = '1'
AUTH_TYPE = '1'
AC_IP = '0'

CREDENTIAL_ENV_USER = 'EGATE_ID'
CREDENTIAL_ENV_PASSWORD = 'EGATE_PASSWORD'
BASE_URL_ENV = 'NET_LOGINER_BASE_URL'

CONFIG_PATH = os.path.expanduser('~/.net_loginer.toml')

# Deployment convention: campus attachment points hand out 10.0.0.0/8
ADDRESS_PREFIX = '10.'

MODEL_DIR = os.path.join(os.path.dirname(__file__), '..', 'ml', 'models')
MODEL_PATH = os.path.join(MODEL_DIR, 'shtu_captcha.onnx')
CHARSET_PATH = os.path.join(MODEL_DIR, 'charset.json')

# [width, height]; -1 marks the side derived from the aspect ratio
RESIZE_PARAM = (-1, 64)
NUM_CHANNELS = 1

HTTP_TIMEOUT = 10.0
MAX_VERIFY_CODE_RETRY = 30
MAX_MISREAD_RETRY = 5

HTTP_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
    ),
    'Accept-Language': 'zh-CN,zh;q=0.9,en;q=0.8',
}
