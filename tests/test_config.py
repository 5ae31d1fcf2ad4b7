import pytest

from originfs.client import OriginFSClient
from originfs.config import OriginFSConfig, get_originfs_home_dir, load_config
from originfs.exceptions import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ORIGINFS_HOME", str(tmp_path))
    monkeypatch.delenv("ORIGINFS_TOKEN", raising=False)
    monkeypatch.delenv("ORIGINFS_BASE_URL", raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = load_config()
    assert get_originfs_home_dir() == tmp_path
    assert config.base_url == "https://api.rotur.dev"
    assert config.token == ""
    assert config.auth_scheme == "query"


def test_loads_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("base_url: https://example.test\ntoken: ' abc '\ntimeout_sec: 5\nauth_scheme: bearer\nunknown: 1\n")

    config = load_config(path)

    assert config.base_url == "https://example.test"
    assert config.token == "abc"
    assert config.timeout_sec == 5
    assert config.auth_scheme == "bearer"


def test_environment_overrides(tmp_path, monkeypatch):
    (tmp_path / "config.yaml").write_text("token: from-file\n")
    monkeypatch.setenv("ORIGINFS_TOKEN", "from-env")
    monkeypatch.setenv("ORIGINFS_BASE_URL", "https://env.test")

    config = load_config()

    assert config.token == "from-env"
    assert config.base_url == "https://env.test"


@pytest.mark.parametrize("content", [
    "timeout_sec: -1\n",
    "auth_scheme: basic\n",
    "- just\n- a list\n",
    "token: [unclosed\n",
])
def test_invalid_config(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.asyncio
async def test_client_from_config():
    config = OriginFSConfig(token="t", base_url="https://example.test/", auth_scheme="bearer", timeout_sec=3)
    client = OriginFSClient.from_config(config)
    try:
        assert client.transport.base_url == "https://example.test"
        assert client.transport.auth_scheme == "bearer"
        assert client.transport.token == "t"
    finally:
        await client.aclose()
