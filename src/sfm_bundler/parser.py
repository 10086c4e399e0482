import argparse

from .constants import FocalPriorSource


def parse_cli(argv: list = None) -> dict:
    """Parse command line arguments and return a dictionary with the input arguments."""

    parser = argparse.ArgumentParser(
        description="Export a COLMAP reconstruction (text format) to Bundler format (bundle.out + list.txt)."
    )
    parser.add_argument(
        "-m",
        "--model",
        type=str,
        help="Directory of the reconstruction, containing cameras.txt, images.txt and points3D.txt.",
        default=None,
    )
    parser.add_argument(
        "-i",
        "--images",
        type=str,
        help="Folder containing the images. Required only to read focal lengths from EXIF.",
        default=None,
    )
    parser.add_argument(
        "-o",
        "--outs",
        type=str,
        help="Output folder. If not specified, a 'bundler' folder is created inside the model folder.",
        default=None,
    )
    parser.add_argument(
        "--lists_file",
        type=str,
        help="Name of the list file, relative to the output folder. Default is list.txt.",
        default=None,
    )
    parser.add_argument(
        "--bundle_file",
        type=str,
        help="Name of the bundle file, relative to the output folder. Default is bundle.out.",
        default=None,
    )
    parser.add_argument(
        "--focal_prior",
        type=str,
        choices=[s.name.lower() for s in FocalPriorSource],
        default=None,
        help="Focal length written in the list file: none, exif (read from the images) or camera (calibrated). Default is none.",
    )
    parser.add_argument(
        "-c",
        "--config_file",
        type=str,
        help="Path of a YAML configuration file that contains user-defined options.",
        default=None,
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        default=None,
        help="Overwrite existing Bundler files in the output folder",
    )
    parser.add_argument(
        "-V",
        "--verbose",
        action="store_true",
        default=None,
    )
    args = parser.parse_args(argv)

    return vars(args)
