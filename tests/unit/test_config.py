"""Tests for bbl configuration loading."""

from __future__ import annotations

from pathlib import Path

from bbl.config import BblConfig, load_bbl_config


class TestBblConfig:
    """Tests for BblConfig."""

    def test_defaults(self):
        config = BblConfig()

        assert config.state_dir == "."
        assert config.terraform_binary == "terraform"
        assert config.bosh_binary == "bosh"
        assert config.debug is False
        assert config.aws_endpoint_url is None

    def test_relative_state_dir(self, tmp_path: Path):
        assert BblConfig(state_dir="envs/prod").get_state_dir(tmp_path) == tmp_path / "envs/prod"

    def test_absolute_state_dir(self, tmp_path: Path):
        assert BblConfig(state_dir=str(tmp_path)).get_state_dir(Path("/elsewhere")) == tmp_path


class TestLoadBblConfig:
    """Tests for load_bbl_config."""

    def test_missing_file(self, tmp_path: Path):
        assert load_bbl_config(tmp_path / "bbl.toml", environ={}) == BblConfig()

    def test_reads_bbl_section(self, tmp_path: Path):
        toml_path = tmp_path / "bbl.toml"
        toml_path.write_text(
            '[bbl]\nstate_dir = "envs/prod"\nterraform_binary = "/opt/terraform"\ndebug = true\n'
        )

        config = load_bbl_config(toml_path, environ={})

        assert config.state_dir == "envs/prod"
        assert config.terraform_binary == "/opt/terraform"
        assert config.debug is True

    def test_invalid_toml_uses_defaults(self, tmp_path: Path):
        toml_path = tmp_path / "bbl.toml"
        toml_path.write_text("[bbl\nnot toml")

        assert load_bbl_config(toml_path, environ={}) == BblConfig()

    def test_environment_overrides_file(self, tmp_path: Path):
        toml_path = tmp_path / "bbl.toml"
        toml_path.write_text('[bbl]\nstate_dir = "from-file"\ndebug = true\n')

        config = load_bbl_config(
            toml_path,
            environ={
                "BBL_STATE_DIR": "from-env",
                "BBL_DEBUG": "false",
                "BBL_AWS_ENDPOINT_URL": "http://localhost:4566",
            },
        )

        assert config.state_dir == "from-env"
        assert config.debug is False
        assert config.aws_endpoint_url == "http://localhost:4566"

    def test_debug_values(self, tmp_path: Path):
        for value in ("1", "true", "YES", "on"):
            config = load_bbl_config(tmp_path / "bbl.toml", environ={"BBL_DEBUG": value})
            assert config.debug is True
