import json
import logging
from copy import deepcopy
from enum import Enum
from pathlib import Path
from pprint import pprint

import yaml

from .constants import FocalPriorSource
from .utils.logger import change_logger_level

logger = logging.getLogger("sfm_bundler")

# General configuration of the export.
conf_general = {
    # Directory of the input reconstruction (COLMAP text model: cameras.txt, images.txt, points3D.txt)
    "model": None,
    # Directory containing the images (used only to read focal lengths from EXIF)
    "images": None,
    # Output directory where the Bundler files are saved (if not provided, a "bundler" folder is created in the model directory)
    "outs": None,
    # Flag to overwrite existing Bundler files in the output directory (default is False)
    "force": False,
    # External YAML configuration file
    "config_file": None,
    # Flag to enable/disable the verbose mode (default is False)
    "verbose": False,
    # Source of the focal length written in the list file:
    #   FocalPriorSource.NONE (only image names),
    #   FocalPriorSource.EXIF (focal length from the EXIF of the images, requires 'images'),
    #   FocalPriorSource.CAMERA (calibrated focal length of the reconstruction)
    "focal_prior": FocalPriorSource.NONE,
}

# Names of the output files, relative to the output directory.
conf_export = {
    "lists_file": "list.txt",
    "bundle_file": "bundle.out",
}


def parse_focal_prior(value) -> FocalPriorSource:
    if isinstance(value, FocalPriorSource):
        return value
    if isinstance(value, str):
        try:
            return FocalPriorSource[value.upper()]
        except KeyError:
            raise ValueError(
                f"Invalid focal_prior option: {value}. Valid options are: {[s.name.lower() for s in FocalPriorSource]}"
            ) from None
    if isinstance(value, int):
        return FocalPriorSource(value)
    raise ValueError(f"Invalid focal_prior option: {value}")


class Config:
    """
    Configuration of a Bundler export.

    The configuration is built from the input arguments (e.g., from the CLI
    parser), optionally updated with a YAML file, and validated.

    Attributes:
        _cfg (dict): The configuration dictionary with the keys 'general' and 'export'.
    """

    @property
    def general(self):
        return self._cfg["general"]

    @property
    def export(self):
        return self._cfg["export"]

    def __repr__(self) -> str:
        return "SfmBundler Configuration Object"

    def __init__(self, args: dict):
        """
        Initialize the Config object.

        Args:
            args (dict): The input arguments provided by the user.

        Raises:
            FileNotFoundError: If the YAML configuration file does not exist.
            ValueError: If the input arguments are invalid.
        """
        self._cfg = {
            "general": deepcopy(conf_general),
            "export": deepcopy(conf_export),
        }

        user_args = {k: v for k, v in args.items() if v is not None}
        self._cfg["general"].update({k: v for k, v in user_args.items() if k in conf_general})
        self._cfg["export"].update({k: v for k, v in user_args.items() if k in conf_export})

        # The YAML file sets the defaults, explicit arguments win
        if self.general["config_file"] is not None:
            config_file = Path(self.general["config_file"]).resolve()
            if not config_file.exists():
                raise FileNotFoundError(f"Configuration file {config_file} not found.")
            self.update_from_yaml(config_file, overrides=user_args)

        self.parse_general_config()

        if self.general["verbose"]:
            change_logger_level(logger.name, "debug")
            self.print()

    def as_dict(self) -> dict:
        return self._cfg

    def parse_general_config(self) -> None:
        """Check the configuration and resolve the input and output paths."""
        cfg = self.general

        if cfg["model"] is None:
            raise ValueError("Invalid input. '--model' option is required.")
        cfg["model"] = Path(cfg["model"])
        if not cfg["model"].exists() or not cfg["model"].is_dir():
            raise ValueError(f"Invalid model folder {cfg['model']}. Directory does not exist")

        cfg["focal_prior"] = parse_focal_prior(cfg["focal_prior"])

        if cfg["images"] is not None:
            cfg["images"] = Path(cfg["images"])
            if not cfg["images"].exists() or not cfg["images"].is_dir():
                raise ValueError(f"Invalid images folder {cfg['images']}. Directory does not exist")
        elif cfg["focal_prior"] == FocalPriorSource.EXIF:
            raise ValueError("'--images' option is required to read focal lengths from EXIF.")

        if cfg["outs"] is None:
            cfg["outs"] = cfg["model"] / "bundler"
        cfg["outs"] = Path(cfg["outs"])
        cfg["outs"].mkdir(parents=True, exist_ok=True)

        for key in conf_export:
            path = Path(self.export[key])
            if not path.is_absolute():
                path = cfg["outs"] / path
            if path.exists():
                if cfg["force"]:
                    logger.warning(f"{path} already exists, but the '--force' option is used. Overwriting it.")
                else:
                    raise ValueError(f"{path} already exists. Use '--force' option to overwrite it.")
            self.export[key] = path

    def update_from_yaml(self, path: Path, overrides: dict = None):
        """
        Update the configuration from a YAML file.

        The file can contain a 'general' and an 'export' section. Values in
        `overrides` (the explicit user arguments) take precedence over the file.

        Args:
            path (Path): The path to the YAML file.
            overrides (dict, optional): Arguments that must not be overwritten.

        Raises:
            FileNotFoundError: If the configuration file is not found.
            ValueError: If the file contains unknown sections or options.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file {path} not found.")

        logger.info(f"Using a custom configuration file: {path}")

        with open(path, "r") as file:
            cfg = yaml.safe_load(file) or {}
        if not isinstance(cfg, dict):
            raise ValueError(f"Invalid configuration file {path}. It must contain the 'general' and/or 'export' sections.")

        overrides = overrides or {}
        for section, defaults in [("general", conf_general), ("export", conf_export)]:
            # An empty section is parsed as None
            options = cfg.get(section) or {}
            if not isinstance(options, dict):
                raise ValueError(f"Invalid section '{section}' in the configuration file {path}. It must be a mapping.")
            for key, value in options.items():
                if key not in defaults:
                    raise ValueError(f"Invalid option '{key}' in section '{section}' of the configuration file {path}.")
                if key in overrides:
                    continue
                self._cfg[section][key] = value

        unknown = set(cfg.keys()) - {"general", "export"}
        if unknown:
            raise ValueError(f"Invalid sections {sorted(unknown)} in the configuration file {path}.")

    def print(self):
        print("Config general:")
        pprint(self.general)
        print("\n")
        print("Config export:")
        pprint(self.export)
        print("\n")

    def save(self, path: Path):
        """Save the configuration to a JSON file.

        Args:
            path (Path): The path where the configuration will be saved.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        cfg = deepcopy(self._cfg)

        for k, v in cfg.items():
            for kk, vv in v.items():
                if isinstance(vv, Enum):
                    cfg[k][kk] = vv.name
                elif isinstance(vv, Path):
                    cfg[k][kk] = str(vv)

        with open(path, "w") as file:
            json.dump(cfg, file, indent=4)
