import json
from pathlib import Path

import pytest
import yaml

from sfm_bundler import Config, FocalPriorSource


def create_config_file(config: dict, path: Path) -> Path:
    with open(path, "w") as f:
        yaml.dump(config, f)
    return Path(path)


def test_default_config(colmap_model_dir):
    config = Config({"model": str(colmap_model_dir)})

    assert isinstance(config, Config)
    assert config.general["model"] == colmap_model_dir
    assert config.general["outs"] == colmap_model_dir / "bundler"
    assert config.general["outs"].is_dir()
    assert config.general["focal_prior"] == FocalPriorSource.NONE
    assert config.general["force"] is False
    assert config.export["lists_file"] == colmap_model_dir / "bundler" / "list.txt"
    assert config.export["bundle_file"] == colmap_model_dir / "bundler" / "bundle.out"


def test_missing_model_option():
    with pytest.raises(ValueError):
        Config({"model": None})


def test_invalid_model_folder(tmp_path):
    with pytest.raises(ValueError):
        Config({"model": str(tmp_path / "does_not_exist")})


def test_invalid_focal_prior(colmap_model_dir):
    with pytest.raises(ValueError):
        Config({"model": colmap_model_dir, "focal_prior": "focal_from_nowhere"})


def test_exif_focal_prior_requires_images(colmap_model_dir, tmp_path):
    with pytest.raises(ValueError):
        Config({"model": colmap_model_dir, "focal_prior": "exif"})

    images = tmp_path / "images"
    images.mkdir()
    config = Config({"model": colmap_model_dir, "focal_prior": "exif", "images": str(images)})
    assert config.general["focal_prior"] == FocalPriorSource.EXIF
    assert config.general["images"] == images


def test_existing_output_requires_force(colmap_model_dir, tmp_path):
    outs = tmp_path / "outs"
    outs.mkdir()
    (outs / "bundle.out").write_text("old")

    with pytest.raises(ValueError):
        Config({"model": colmap_model_dir, "outs": str(outs)})

    config = Config({"model": colmap_model_dir, "outs": str(outs), "force": True})
    assert config.export["bundle_file"] == outs / "bundle.out"


def test_update_from_yaml(colmap_model_dir, tmp_path):
    cfg = {
        "general": {"focal_prior": "camera", "force": True},
        "export": {"bundle_file": "scene.out"},
    }
    config_file = create_config_file(cfg, tmp_path / "config.yaml")

    config = Config({"model": colmap_model_dir, "config_file": config_file})
    assert config.general["focal_prior"] == FocalPriorSource.CAMERA
    assert config.general["force"] is True
    assert config.export["bundle_file"] == colmap_model_dir / "bundler" / "scene.out"
    assert config.export["lists_file"] == colmap_model_dir / "bundler" / "list.txt"


def test_arguments_override_yaml(colmap_model_dir, tmp_path):
    config_file = create_config_file({"general": {"focal_prior": "camera"}}, tmp_path / "config.yaml")
    config = Config({"model": colmap_model_dir, "config_file": config_file, "focal_prior": "none"})
    assert config.general["focal_prior"] == FocalPriorSource.NONE


def test_invalid_yaml_options(colmap_model_dir, tmp_path):
    config_file = create_config_file({"general": {"tile_size": 10}}, tmp_path / "config.yaml")
    with pytest.raises(ValueError):
        Config({"model": colmap_model_dir, "config_file": config_file})

    config_file = create_config_file({"matcher": {"name": "lightglue"}}, tmp_path / "config2.yaml")
    with pytest.raises(ValueError):
        Config({"model": colmap_model_dir, "config_file": config_file})


def test_empty_yaml_section(colmap_model_dir, tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("general:\nexport:\n  bundle_file: x.out\n")

    config = Config({"model": colmap_model_dir, "config_file": config_file})
    assert config.general["focal_prior"] == FocalPriorSource.NONE
    assert config.export["bundle_file"] == colmap_model_dir / "bundler" / "x.out"


@pytest.mark.parametrize("content", ["- general\n- export\n", "general: camera\n", "export: [list.txt]\n"])
def test_yaml_not_a_mapping(colmap_model_dir, tmp_path, content):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(content)
    with pytest.raises(ValueError):
        Config({"model": colmap_model_dir, "config_file": config_file})


def test_missing_config_file(colmap_model_dir, tmp_path):
    with pytest.raises(FileNotFoundError):
        Config({"model": colmap_model_dir, "config_file": tmp_path / "missing.yaml"})


def test_save_config(colmap_model_dir, tmp_path):
    config = Config({"model": colmap_model_dir, "focal_prior": "camera"})
    path = tmp_path / "out" / "config.json"
    config.save(path)

    with open(path) as f:
        saved = json.load(f)
    assert saved["general"]["focal_prior"] == "CAMERA"
    assert saved["general"]["model"] == str(colmap_model_dir)
    assert saved["export"]["bundle_file"] == str(colmap_model_dir / "bundler" / "bundle.out")
