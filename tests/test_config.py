import importlib

from sscrypt import config


def test_defaults(monkeypatch):
    for name in ("SS_KEY_BITS", "SS_MR_ITERS", "SS_PUB_FILE", "SS_PRIV_FILE", "SS_KEYGEN_TIMEOUT", "SS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    try:
        importlib.reload(config)
        assert config.KEY_BITS == 256
        assert config.MR_ITERS == 50
        assert config.PUB_FILE == "ss.pub"
        assert config.PRIV_FILE == "ss.priv"
        assert config.KEYGEN_TIMEOUT is None
        assert config.LOG_LEVEL == "WARNING"
    finally:
        monkeypatch.undo()
        importlib.reload(config)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SS_KEY_BITS", "512")
    monkeypatch.setenv("SS_PUB_FILE", "alice.pub")
    monkeypatch.setenv("SS_KEYGEN_TIMEOUT", "2.5")
    monkeypatch.setenv("SS_LOG_LEVEL", "debug")
    try:
        importlib.reload(config)
        assert config.KEY_BITS == 512
        assert config.PUB_FILE == "alice.pub"
        assert config.KEYGEN_TIMEOUT == 2.5
        assert config.LOG_LEVEL == "DEBUG"
    finally:
        monkeypatch.undo()
        importlib.reload(config)
