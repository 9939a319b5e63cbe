import pytest

from sublyne_installer.config import InstallConfig, default_config, merge_config, resolve_config
from sublyne_installer.errors import ConfigError


def test_defaults_describe_the_standard_layout():
    cfg = InstallConfig(raw=resolve_config(environ={}))
    assert cfg.app_dir == "/opt/sublyne"
    assert cfg.backend_dir == "/opt/sublyne/backend"
    assert cfg.venv_python == "/opt/sublyne/venv/bin/python"
    assert cfg.database_path == "/opt/sublyne/database/sublyne.db"
    assert cfg.service_user == "sublyne"
    assert cfg.unit_name == "sublyne.service"
    assert cfg.api_port == 8000
    assert cfg.source_method == "git"
    assert cfg.firewall_enabled is False
    assert cfg.restore_job_enabled is False
    assert cfg.restore_job_user == "root"
    assert (cfg.admin_username, cfg.admin_password) == ("admin", "admin123")
    assert cfg.gost_install_path == "/usr/local/bin/gost"


def test_derived_source_urls():
    cfg = InstallConfig(raw=resolve_config(environ={}, overrides={"source": {"branch": "dev"}}))
    assert cfg.archive_url == "https://github.com/PatrickStatus/Sublyne/archive/refs/heads/dev.zip"
    assert cfg.release_url == "https://github.com/PatrickStatus/Sublyne/releases/latest/download/sublyne.zip"
    assert cfg.source_url == cfg.repo_url


def test_gost_url_uses_version_and_arch():
    cfg = InstallConfig(raw=resolve_config(environ={}))
    assert cfg.gost_url("amd64") == (
        "https://github.com/ginuerzh/gost/releases/download/v2.11.5/gost-linux-amd64-2.11.5.tar.gz"
    )


def test_merge_is_deep_and_does_not_mutate_base():
    base = default_config()
    merged = merge_config(base, {"firewall": {"enabled": True}})
    assert merged["firewall"] == {"enabled": True, "ipv6": True}
    assert base["firewall"]["enabled"] is False


def test_precedence_file_env_cli(tmp_path):
    cfg_file = tmp_path / "install.yaml"
    cfg_file.write_text("source:\n  branch: from-file\n  method: archive\napi_port: 9000\n", encoding="utf-8")

    raw = resolve_config(
        config_path=str(cfg_file),
        saved={"source": {"branch": "from-state"}},
        environ={"SUBLYNE_BRANCH": "from-env"},
        overrides={"api_port": 9100},
    )
    assert raw["source"]["branch"] == "from-env"
    assert raw["source"]["method"] == "archive"
    assert raw["api_port"] == 9100


def test_env_port_must_be_integer():
    with pytest.raises(ConfigError):
        resolve_config(environ={"SUBLYNE_API_PORT": "eighty"})


@pytest.mark.parametrize(
    "override",
    [
        {"source": {"method": "ftp"}},
        {"api_port": 70000},
        {"api_port": 0},
        {"health": {"attempts": "many"}},
        {"health": {"interval": -1}},
        {"download": {"timeout": "soon"}},
        {"app_dir": "relative/path"},
        {"packages": "htop"},
    ],
)
def test_invalid_config_is_rejected(override):
    with pytest.raises(ConfigError):
        resolve_config(environ={}, overrides=override)


def test_config_file_must_be_yaml_mapping(tmp_path):
    p = tmp_path / "install.yaml"
    p.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        resolve_config(config_path=str(p), environ={})
    with pytest.raises(ConfigError):
        resolve_config(config_path=str(tmp_path / "missing.yaml"), environ={})
