"""Tests for the command-line entry point."""

import pytest

from stomata import cli as cli_module
from stomata import config as config_module
from stomata.cli import build_parser, main, resolve_config
from stomata.navigation import Feature

ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    """Point the default config location at an empty directory."""
    monkeypatch.setattr(config_module, "_DEFAULT_PATH", tmp_path / "missing.toml")


def test_overrides_take_precedence(tmp_path):
    """Test command-line values override the config file."""
    path = tmp_path / "stomata.toml"
    path.write_text('interval_ms = 2000\n\n[web3]\nrpc_url = "http://file:8545"\n', encoding="utf-8")
    args = build_parser().parse_args(
        ["--config", str(path), "--interval", "250", "--rpc-url", "http://cli:8545"]
    )
    config = resolve_config(args)
    assert config.interval_ms == 250
    assert config.rpc_url == "http://cli:8545"
    assert config.rpc_timeout == 10.0


def test_file_values_used_without_overrides(tmp_path):
    """Test file values apply when no flag is given."""
    path = tmp_path / "stomata.toml"
    path.write_text("clamp_quantile = 0.9\n", encoding="utf-8")
    config = resolve_config(build_parser().parse_args(["--config", str(path)]))
    assert config.clamp_quantile == 0.9
    assert config.interval_ms == 1000


def test_dump_config(capsys):
    """Test --dump-config prints the defaults."""
    assert main(["--dump-config"]) == 0
    out = capsys.readouterr().out
    assert "interval_ms = 1000" in out
    assert "[web3]" in out


def test_validate_valid_address(capsys):
    """Test the validate subcommand accepts a checksummed address."""
    assert main(["validate", ADDRESS.lower()]) == 0
    assert ADDRESS in capsys.readouterr().out


def test_validate_invalid_address(capsys):
    """Test the validate subcommand reports a failure exit status."""
    assert main(["validate", "0x123"]) == 1
    assert "invalid length" in capsys.readouterr().out


def test_invalid_interval(capsys):
    """Test a bad interval is reported instead of starting the UI."""
    assert main(["--interval", "0"]) == 1
    assert "interval_ms must be positive" in capsys.readouterr().err


def test_missing_config_file(tmp_path, capsys):
    """Test a missing --config file is reported."""
    assert main(["--config", str(tmp_path / "nope.toml")]) == 1
    assert "config file not found" in capsys.readouterr().err


def test_version(capsys):
    """Test --version prints the package version."""
    with pytest.raises(SystemExit):
        main(["--version"])
    assert "stomata 0.1.0" in capsys.readouterr().out


@pytest.mark.parametrize(
    ("argv", "feature"),
    [([], Feature.CORE), (["core"], Feature.CORE), (["web3"], Feature.WEB3)],
)
def test_feature_subcommands(monkeypatch, argv, feature):
    """Test each subcommand runs its feature once."""
    ran = []
    monkeypatch.setattr(cli_module, "run_feature", lambda f, config: ran.append(f))
    assert main(argv) == 0
    assert ran == [feature]


def test_interactive_flag_starts_launcher(monkeypatch):
    """Test -i hands the resolved config to the launcher."""
    seen = []
    monkeypatch.setattr(cli_module, "run_interactive", lambda config: seen.append(config))
    assert main(["-i", "--interval", "300"]) == 0
    assert seen[0].interval_ms == 300
