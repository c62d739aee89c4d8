import pytest

from certpathbuilder.config import Config
from certpathbuilder.exceptions import InvalidConfigurationError
from certpathbuilder.utils.settings import DEFAULT_MAX_PATH_LENGTH


def test_defaults_when_no_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = Config.load()
    assert cfg.max_path_length == DEFAULT_MAX_PATH_LENGTH
    assert cfg.anchors == []
    assert cfg.check_validity is True


def test_toml_file(tmp_path):
    path = tmp_path / "certpathbuilder.toml"
    path.write_text(
        'max_path_length = 3\n'
        'anchors = ["roots/root.pem"]\n'
        'stores = ["intermediates"]\n'
        'use_aia = true\n'
        'ignored_critical_extensions = ["1.2.3.4"]\n'
    )
    cfg = Config.load(str(path))
    assert cfg.max_path_length == 3
    assert cfg.anchors == ["roots/root.pem"]
    assert cfg.stores == ["intermediates"]
    assert cfg.use_aia is True
    assert cfg.ignored_critical_extensions == ["1.2.3.4"]


def test_pyproject_section_found_in_cwd(tmp_path, monkeypatch):
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "x"\n\n[tool.certpathbuilder]\nmax_path_length = -1\n'
    )
    monkeypatch.chdir(tmp_path)
    assert Config.load().max_path_length == -1


def test_yaml_file(tmp_path):
    path = tmp_path / ".certpathbuilder.yaml"
    path.write_text("uris:\n  - http://ca.example.com/ca.der\ncheck_validity: false\n")
    cfg = Config.load(str(path))
    assert cfg.uris == ["http://ca.example.com/ca.der"]
    assert cfg.check_validity is False


def test_setup_cfg_section(tmp_path, monkeypatch):
    (tmp_path / "setup.cfg").write_text(
        "[certpathbuilder]\nanchors = a.pem, b.pem\nstore_timeout = 1.5\nuse_aia = yes\n"
    )
    monkeypatch.chdir(tmp_path)
    cfg = Config.load()
    assert cfg.anchors == ["a.pem", "b.pem"]
    assert cfg.store_timeout == 1.5
    assert cfg.use_aia is True


@pytest.mark.parametrize("content", [
    'max_path_length = "many"\n',
    'use_aia = "sometimes"\n',
])
def test_invalid_values(tmp_path, content):
    path = tmp_path / "certpathbuilder.toml"
    path.write_text(content)
    with pytest.raises(InvalidConfigurationError):
        Config.load(str(path))


def test_missing_explicit_file(tmp_path):
    with pytest.raises(InvalidConfigurationError):
        Config.load(str(tmp_path / "absent.toml"))
