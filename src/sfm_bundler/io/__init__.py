from .bundler import (
    create_estimated_subreconstruction,
    write_bundle_file,
    write_bundler_files,
    write_lists_file,
)
from .colmap import read_colmap_model
from .exif import get_focal, set_focal_priors
