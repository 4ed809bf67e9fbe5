import logging
from pathlib import Path

import pytest

from codeswitch_lm.config import configure_logging, load_config, load_training_options
from codeswitch_lm.errors import ConfigurationError, MissingResourceError


def test_load_dev_profile(monkeypatch) -> None:
    monkeypatch.delenv("CODESWITCH_LM_ENV", raising=False)
    monkeypatch.delenv("CODESWITCH_LM_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CODESWITCH_LM_API_HOST", raising=False)
    monkeypatch.delenv("CODESWITCH_LM_API_PORT", raising=False)
    monkeypatch.delenv("CODESWITCH_LM_WORKERS", raising=False)
    monkeypatch.delenv("CODESWITCH_LM_MODEL_PATH", raising=False)

    repo_root = Path(__file__).resolve().parents[1]
    config = load_config("dev", config_dir=repo_root / "configs")

    assert config.env == "dev"
    assert config.log_level == "DEBUG"
    assert config.api_host == "127.0.0.1"
    assert config.api_port == 8000
    assert config.workers == 1
    assert config.model_path == "lm/cs_lm.json.gz"


def test_env_override(monkeypatch) -> None:
    monkeypatch.setenv("CODESWITCH_LM_ENV", "prod")
    monkeypatch.setenv("CODESWITCH_LM_API_PORT", "9000")
    monkeypatch.setenv("CODESWITCH_LM_MODEL_PATH", "/models/latest.json.gz")

    repo_root = Path(__file__).resolve().parents[1]
    config = load_config(config_dir=repo_root / "configs")

    assert config.env == "prod"
    assert config.api_port == 9000
    assert config.model_path == "/models/latest.json.gz"


def test_invalid_port_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CODESWITCH_LM_API_PORT", "eighty")

    with pytest.raises(ValueError, match="CODESWITCH_LM_API_PORT"):
        load_config("dev", config_dir=tmp_path)


def test_configure_logging() -> None:
    configure_logging("warning")
    assert logging.getLogger().level == logging.WARNING

    with pytest.raises(ConfigurationError):
        configure_logging("LOUD")


def test_training_options_from_profile(tmp_path: Path) -> None:
    profile = tmp_path / "train.toml"
    profile.write_text(
        "\n".join(
            [
                "[training]",
                'lm_path = "out/cs_lm.json.gz"',
                "char_n = 4",
                "[training.text_paths]",
                'english = "texts/en"',
                'latin = "texts/la"',
                "[training.language_priors]",
                "english = 0.8",
                "latin = 0.2",
            ]
        ),
        encoding="utf-8",
    )

    options = load_training_options(profile, {"char_n": 5, "power": None})

    assert options.lm_path == "out/cs_lm.json.gz"
    assert options.char_n == 5
    assert options.power == 4.0
    assert options.text_paths == {"english": "texts/en", "latin": "texts/la"}
    assert options.language_priors == {"english": 0.8, "latin": 0.2}


def test_training_option_defaults() -> None:
    options = load_training_options(overrides={"lm_path": "lm.json.gz", "text_paths": "texts"})

    assert options.use_long_s is False
    assert options.keep_diacritics is True
    assert options.max_lines == 1_000_000
    assert options.char_n == 6
    assert options.lm_char_count == -1
    assert options.max_chars is None
    assert options.p_keep_same_language == pytest.approx(0.999999)


def test_invalid_training_options(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="invalid training options"):
        load_training_options(overrides={"lm_path": "lm.json.gz", "text_paths": "t", "char_n": 0})
    with pytest.raises(ConfigurationError):
        load_training_options(overrides={"text_paths": "t"})

    broken = tmp_path / "broken.toml"
    broken.write_text("[training\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_training_options(broken)


def test_missing_training_profile(tmp_path: Path) -> None:
    with pytest.raises(MissingResourceError):
        load_training_options(tmp_path / "absent.toml")
