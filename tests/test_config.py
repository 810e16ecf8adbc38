import pytest

import constants
from config import load_config, AppConfig

ENV_VARS = [
    constants.PORT_ENV_VAR,
    constants.RPC_HTTP_ENV_VAR,
    constants.WALLET_PRIVATE_KEY_ENV_VAR,
    constants.PROFIT_WALLET_ENV_VAR,
    constants.BACKEND_WALLET_ENV_VAR,
    constants.TELEGRAM_BOT_TOKEN_ENV_VAR,
    constants.LOG_LEVEL_ENV_VAR,
]

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Start every test from an empty environment
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

def test_defaults():
    config = load_config([])
    assert isinstance(config, AppConfig)
    assert config.host == '0.0.0.0'
    assert config.port == constants.DEFAULT_PORT
    assert config.rpc_url == constants.DEFAULT_RPC_HTTP
    assert config.strategy_count == 450
    assert config.interval == 5.0
    assert config.uhf_interval == 0.1
    assert config.error_backoff == 10.0
    assert config.log_level == 'INFO'
    assert config.wallet_private_key is None
    assert config.backend_wallet_address == constants.DEFAULT_BACKEND_WALLET
    assert config.profit_wallet_address == constants.DEFAULT_BACKEND_WALLET
    assert config.telegram_enabled is False

def test_environment_overrides(monkeypatch):
    monkeypatch.setenv(constants.PORT_ENV_VAR, '9090')
    monkeypatch.setenv(constants.RPC_HTTP_ENV_VAR, 'http://node:8545')
    monkeypatch.setenv(constants.WALLET_PRIVATE_KEY_ENV_VAR, '0xabc')
    monkeypatch.setenv(constants.PROFIT_WALLET_ENV_VAR, '0x00000000000000000000000000000000000000bb')
    monkeypatch.setenv(constants.LOG_LEVEL_ENV_VAR, 'DEBUG')

    config = load_config([])

    assert config.port == 9090
    assert config.rpc_url == 'http://node:8545'
    assert config.wallet_private_key == '0xabc'
    assert config.profit_wallet_address == '0x00000000000000000000000000000000000000bb'
    assert config.log_level == 'DEBUG'

def test_invalid_port_env_falls_back_to_default(monkeypatch):
    monkeypatch.setenv(constants.PORT_ENV_VAR, 'not-a-port')
    assert load_config([]).port == constants.DEFAULT_PORT

def test_placeholder_private_key_is_ignored(monkeypatch):
    monkeypatch.setenv(constants.WALLET_PRIVATE_KEY_ENV_VAR, constants.PLACEHOLDER_PRIVATE_KEY)
    assert load_config([]).wallet_private_key is None

def test_cli_arguments_override_environment(monkeypatch):
    monkeypatch.setenv(constants.PORT_ENV_VAR, '9090')
    config = load_config([
        '--port', '7000',
        '--strategy-count', '12',
        '--interval', '2.5',
        '--uhf-interval', '0.05',
        '--log-level', 'warning',
    ])
    assert config.port == 7000
    assert config.strategy_count == 12
    assert config.interval == 2.5
    assert config.uhf_interval == 0.05
    assert config.log_level == 'WARNING'

@pytest.mark.parametrize('argv', [
    ['--strategy-count', '0'],
    ['--interval', '0'],
    ['--uhf-interval', '-1'],
    ['--error-backoff', '0'],
    ['--log-level', 'verbose'],
])
def test_invalid_arguments_exit(argv):
    with pytest.raises(SystemExit):
        load_config(argv)

def test_telegram_requires_token(monkeypatch):
    with pytest.raises(SystemExit):
        load_config(['--telegram-enabled'])

    monkeypatch.setenv(constants.TELEGRAM_BOT_TOKEN_ENV_VAR, '123456:ABC-DEF')
    config = load_config(['--telegram-enabled'])
    assert config.telegram_enabled is True
    assert config.telegram_bot_token == '123456:ABC-DEF'
