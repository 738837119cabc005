"""Main module for the printable maps CLI."""

import argparse
import os
import pathlib
import sys
from typing import List, Optional

from . import __version__
from .core.exceptions import PrintableMapsError
from .core.factories import PrintableMapsFactory
from .core.image_utils import read_image_dimensions
from .core.layout import calculate_grid_layout
from .core.logging_config import get_logger, set_debug_logging
from .core.models import (
    AppConfig,
    BatchStatus,
    OutlineStyle,
    PaperSizeName,
    UploadedImage,
)
from .document import expected_page_count
from .processors.background import BackgroundBatchRunner, InlineBatchRunner


def _add_style_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--paper-size",
        default=PaperSizeName.A4.value,
        choices=[size.value for size in PaperSizeName],
        help="Paper format of every sheet (default: a4)",
    )
    parser.add_argument(
        "--outline-style",
        default=OutlineStyle.DASH.value,
        choices=[style.value for style in OutlineStyle],
        help="Cut outline drawn on map pages (default: dash)",
    )
    parser.add_argument(
        "--outline-thickness",
        type=int,
        default=3,
        help="Outline stroke width in points, 1-10 (default: 3)",
    )
    parser.add_argument(
        "--outline-color", default="#ffffff", help="Outline color (default: #ffffff)"
    )
    parser.add_argument(
        "--no-backside-numbers",
        action="store_true",
        help="Do not insert page-number sheets between map pages",
    )


def _add_host_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-dir", default="output", help="Directory for generated documents"
    )
    parser.add_argument(
        "--backend",
        default="local",
        choices=["local", "s3"],
        help="Where generated documents are stored (default: local)",
    )
    parser.add_argument("--s3-bucket", default=None, help="Destination S3 bucket")
    parser.add_argument("--s3-prefix", default="", help="Destination S3 prefix")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="printable-maps",
        description="Printable Maps - split a map image into a printable multi-page PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show how many sheets a map needs
  printable-maps plan dungeon.png --scale 0.5 --paper-size letter

  # Generate one document
  printable-maps generate dungeon.png --scale 0.5 --outline-style solid

  # Generate documents for several maps in one batch
  printable-maps batch level1.png level2.png --name "Campaign maps"

  # Show version
  printable-maps version
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    plan_parser = subparsers.add_parser("plan", help="Show the sheet grid for a map")
    plan_parser.add_argument("image", help="Map image file")
    plan_parser.add_argument(
        "--scale", type=float, default=1.0, help="Points per image pixel (default: 1.0)"
    )
    plan_parser.add_argument(
        "--paper-size",
        default=PaperSizeName.A4.value,
        choices=[size.value for size in PaperSizeName],
        help="Paper format of every sheet (default: a4)",
    )
    plan_parser.add_argument(
        "--no-backside-numbers",
        action="store_true",
        help="Count pages without page-number sheets",
    )

    generate_parser = subparsers.add_parser(
        "generate", help="Generate the printable document for one map"
    )
    generate_parser.add_argument("image", help="Map image file")
    generate_parser.add_argument(
        "--scale", type=float, default=1.0, help="Points per image pixel (default: 1.0)"
    )
    generate_parser.add_argument("--offset-x", type=float, default=0.0)
    generate_parser.add_argument("--offset-y", type=float, default=0.0)
    generate_parser.add_argument("--rotation", type=float, default=0.0)
    _add_style_arguments(generate_parser)
    _add_host_arguments(generate_parser)

    batch_parser = subparsers.add_parser(
        "batch", help="Generate documents for several maps sharing one style"
    )
    batch_parser.add_argument("images", nargs="+", help="Map image files")
    batch_parser.add_argument("--name", default=None, help="Batch job name")
    _add_style_arguments(batch_parser)
    _add_host_arguments(batch_parser)

    subparsers.add_parser("version", help="Show version information")
    return parser


def _settings_from_args(args: argparse.Namespace) -> dict:
    return {
        "paperSize": args.paper_size,
        "outlineStyle": args.outline_style,
        "outlineThickness": args.outline_thickness,
        "outlineColor": args.outline_color,
        "generateBacksideNumbers": not args.no_backside_numbers,
    }


def _config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        output_dir=args.output_dir,
        artifact_backend=args.backend,
        s3_bucket=args.s3_bucket,
        s3_prefix=args.s3_prefix,
        debug=args.debug,
    )


def run_plan(args: argparse.Namespace) -> None:
    data = pathlib.Path(args.image).read_bytes()
    width, height = read_image_dimensions(data)
    layout = calculate_grid_layout(width, height, args.scale, args.paper_size)
    total_pages = expected_page_count(layout, not args.no_backside_numbers)

    print(f"Image: {args.image} ({width}x{height} px)")
    print(f"Paper: {layout.paper.name} ({layout.paper.width}x{layout.paper.height} pt)")
    print(f"Grid: {layout.pages_x} x {layout.pages_y} = {layout.total_pages} map pages")
    print(f"Document pages: {total_pages}")


def run_generate(args: argparse.Namespace) -> None:
    services = PrintableMapsFactory.create_services(
        _config_from_args(args), runner=InlineBatchRunner()
    )
    project_service = services.project_service

    path = pathlib.Path(args.image)
    project = project_service.upload(path.name, path.read_bytes(), _settings_from_args(args))
    project_service.calibrate(
        project.id, args.scale, args.offset_x, args.offset_y, args.rotation
    )
    project = project_service.generate_document(project.id)
    print(f"{project.file_name}: {project.output_ref}")


def run_batch(args: argparse.Namespace) -> bool:
    """Run a batch to the end; returns False when the job failed."""
    runner = BackgroundBatchRunner()
    services = PrintableMapsFactory.create_services(_config_from_args(args), runner=runner)
    batch_service = services.batch_service

    images = [
        UploadedImage(file_name=pathlib.Path(image).name, data=pathlib.Path(image).read_bytes())
        for image in args.images
    ]
    try:
        job = batch_service.create_job(images, _settings_from_args(args), args.name)
        batch_service.start_job(job.id)
        runner.wait(job.id)
    finally:
        runner.shutdown()

    job = batch_service.get_job(job.id)
    print(f"Batch job: {job.name} ({job.id})")
    print(f"Status: {job.status.value}")
    print(f"Processed: {job.processed_files}/{job.total_files}, failed: {job.failed_files}")
    for project_id in job.project_ids:
        project = services.project_service.get(project_id)
        print(f"  {project.file_name}: {project.output_ref or project.status.value}")
    if job.error_message:
        print(f"Error: {job.error_message}")
    return job.status is BatchStatus.COMPLETED


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the printable maps command-line interface.

    Exits with status 1 on errors, on a failed batch job and when no
    command is given.
    """
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.command == "version":
        print("Printable Maps CLI")
        print(f"Version {__version__}")
        print("Split map images into printable multi-page PDF documents")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if getattr(args, "debug", False):
        os.environ["LOG_LEVEL"] = "DEBUG"
        set_debug_logging()

    logger = get_logger("printable-maps.cli")
    try:
        if args.command == "plan":
            run_plan(args)
        elif args.command == "generate":
            run_generate(args)
        elif args.command == "batch" and not run_batch(args):
            sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user.")
    except (PrintableMapsError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
