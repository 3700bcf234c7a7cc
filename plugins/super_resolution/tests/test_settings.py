from pathlib import Path

from plugins.super_resolution.core import load_settings
from plugins.super_resolution.core.settings import DEFAULT_MODEL_FILE


def test_load_settings_uses_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("SR_MODEL_STORE", raising=False)
    settings = load_settings({}, root=tmp_path)
    assert settings.enabled is True
    assert settings.model_path == (tmp_path / "model_store" / DEFAULT_MODEL_FILE).resolve()
    assert settings.model_path.is_absolute()
    assert (settings.base_dim, settings.scale, settings.scaled_dim) == (224, 3, 672)
    assert settings.chroma_resample == "bilinear"
    assert settings.provider == "auto"


def test_load_settings_accepts_upload_limit(tmp_path: Path):
    settings = load_settings(
        {"upload": {"max_mb": 7}},
        root=tmp_path,
    )
    assert settings.max_upload_mb == 7


def test_model_store_env_var_wins(tmp_path: Path, monkeypatch):
    store = tmp_path / "elsewhere"
    monkeypatch.setenv("SR_MODEL_STORE", str(store))
    settings = load_settings({"models_root": "ignored", "model_file": "sr.onnx"}, root=tmp_path)
    assert settings.model_path == (store / "sr.onnx").resolve()


def test_invalid_values_fall_back(tmp_path: Path):
    settings = load_settings(
        {
            "base_dim": "zero",
            "scale": -2,
            "chroma_resample": "lanczos",
            "inference_timeout_s": "soon",
            "provider": "CPU",
        },
        root=tmp_path,
    )
    assert settings.base_dim == 224
    assert settings.scale == 3
    assert settings.chroma_resample == "bilinear"
    assert settings.inference_timeout_s == 60.0
    assert settings.provider == "cpu"


def test_custom_model_store_env_var(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("SR_MODEL_STORE", raising=False)
    monkeypatch.setenv("SR_CUSTOM_MODELS", str(tmp_path / "custom"))
    settings = load_settings({"models_root_env": "SR_CUSTOM_MODELS"}, root=tmp_path)
    assert settings.model_path == (tmp_path / "custom" / DEFAULT_MODEL_FILE).resolve()

    monkeypatch.delenv("SR_CUSTOM_MODELS")
    settings = load_settings(
        {"models_root_env": "SR_CUSTOM_MODELS", "models_root": "weights"}, root=tmp_path
    )
    assert settings.model_path == (tmp_path / "weights" / DEFAULT_MODEL_FILE).resolve()
