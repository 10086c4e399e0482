from enum import Enum

import numpy as np

from .utils import Timer, setup_logger

logger = setup_logger(name="sfm_bundler", log_level="info")
timer = Timer(logger=logger)

BUNDLE_FILE_HEADER = "# Bundle file v0.3"

# Tracks seen by fewer views carry no multi-view constraint
MIN_TRACK_VIEWS = 2

# Bundler keeps no colors and no SIFT keyfiles, these fill the fixed fields
PLACEHOLDER_COLOR = "255 255 255"
PLACEHOLDER_KEYPOINT_INDEX = 0

# Flips y and z: x-right/y-down/z-forward cameras become Bundler's
# x-right/y-up/z-backward ones
RECONSTRUCTION_TO_BUNDLER = np.diag([1.0, -1.0, -1.0])


class FocalPriorSource(Enum):
    """Enumeration for the source of the focal length written to the list file."""

    NONE = 0
    EXIF = 1
    CAMERA = 2
