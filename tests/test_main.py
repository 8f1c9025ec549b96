import pytest

from net_loginer import main as cli
from net_loginer.configs.settings import Settings
from tests.conftest import StubClient


@pytest.fixture
def stub_client(monkeypatch):
    client = StubClient(lambda params: {'success': params['validCode'] == 'k3y9'})
    monkeypatch.setattr(cli, 'HTTPRequest', lambda *args, **kwargs: client)
    monkeypatch.setattr(cli, '_solver', lambda settings: (lambda img: 'k3y9'))
    return client


def _settings(**kwargs):
    kwargs.setdefault('user_id', 'u')
    kwargs.setdefault('password', 'p')
    kwargs.setdefault('retry_delay', 0)
    return Settings(**kwargs)


def test_parser_maps_flags_to_settings_keys():
    args = cli.build_parser().parse_args([
        '-a', '10.0.0.2', '-a', '10.0.0.3', '--keep-going', '--code-length', '4',
        '--resize', '-1', '48', '-C', '--insecure',
    ])
    assert args.addresses == ['10.0.0.2', '10.0.0.3']
    assert args.abort_on_failure is False
    assert args.verify_code_length == 4
    assert args.resize == [-1, 48]
    assert args.auto_captcha is False
    assert args.verify_tls is False


def test_parser_leaves_unset_flags_as_none():
    args = cli.build_parser().parse_args([])
    assert args.abort_on_failure is None
    assert args.auto_captcha is None
    assert args.addresses is None


def test_run_logs_in_every_address(stub_client):
    code = cli.run(_settings(addresses=['10.0.0.2', '10.0.0.3']))

    assert code == 0
    assert stub_client.page_calls == ['10.0.0.2', '10.0.0.3']
    assert stub_client.closed


def test_dry_run_never_submits(stub_client):
    code = cli.run(_settings(user_id=None, password=None, addresses=['10.0.0.2']), dry_run=True)

    assert code == 0
    assert stub_client.image_calls == ['10.0.0.2']
    assert stub_client.forms == []


def test_no_addresses(monkeypatch, stub_client):
    monkeypatch.setattr(cli, 'discover_addresses', lambda prefix: [])
    assert cli.run(_settings()) == 1
