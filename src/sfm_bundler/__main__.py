import sys

import sfm_bundler as sb
from sfm_bundler import logger, timer


def run_export(args: dict) -> bool:
    """
    Read a reconstruction and export it in Bundler format.

    Args:
        args: Configuration arguments (e.g., the output of parse_cli)

    Returns:
        bool: True if the Bundler files were written.
    """
    timer.start()

    config = sb.Config(args)
    output_dir = config.general["outs"]

    reconstruction = sb.read_colmap_model(config.general["model"])
    timer.update("Read reconstruction")

    sb.set_focal_priors(
        reconstruction,
        image_dir=config.general["images"],
        source=config.general["focal_prior"],
    )
    timer.update("Focal priors")

    success = sb.write_bundler_files(
        reconstruction,
        lists_file=config.export["lists_file"],
        bundle_file=config.export["bundle_file"],
    )
    timer.update("Export to Bundler")

    if success:
        config.save(output_dir / "config.json")
    else:
        logger.error("Export to Bundler failed.")

    timer.print("Total execution time")
    return success


def main():
    args = sb.parse_cli()
    if not run_export(args):
        sys.exit(1)


if __name__ == "__main__":
    main()
