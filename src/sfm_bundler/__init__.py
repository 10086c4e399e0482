__version__ = "0.1.0"

from . import io, utils
from .camera import Camera, CameraIntrinsicsPrior
from .config import Config
from .constants import *
from .io import (
    create_estimated_subreconstruction,
    read_colmap_model,
    set_focal_priors,
    write_bundle_file,
    write_bundler_files,
    write_lists_file,
)
from .parser import parse_cli
from .reconstruction import Feature, Reconstruction, Track, View
