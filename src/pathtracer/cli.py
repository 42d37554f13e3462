"""Command-line renderer.

Renders one of the demo scenes and writes the image to disk.

Usage:
    pathtracer [options]
    python -m pathtracer [options]

Options:
    -d, --dimensions W H  Image width and height in pixels (default: 200 100)
    -s, --scene NAME      Scene to render (default: default)
    -n, --samples N       Samples per pixel (default: 100)
    -o, --output PATH     Output image, .ppm or any Pillow format
                          (default: output/output.ppm)
    --seed SEED           Seed for the scene and the random streams (default: 0)
    --arch {cpu,gpu}      Taichi backend (default: cpu)
    --image PATH          Image wrapped around the globe in the "image" scene
    --batch-size N        Samples per progress update (default: 10)
    --show                Display the result in a Matplotlib window
    -v, --verbose         Log debug messages
    -q, --quiet           Only log warnings and hide the progress bar

Example:
    pathtracer -d 400 200 -s spheres -n 200 -o output/spheres.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti
from tqdm import tqdm

from pathtracer.config import ARCH_NAMES, SCENE_NAMES, RenderConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a demo scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-d",
        "--dimensions",
        type=int,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=(200, 100),
        help="Image width and height in pixels (default: 200 100)",
    )
    parser.add_argument(
        "-s",
        "--scene",
        choices=SCENE_NAMES,
        default="default",
        help="Scene to render (default: default)",
    )
    parser.add_argument(
        "-n",
        "--samples",
        type=int,
        default=100,
        help="Samples per pixel (default: 100)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("output/output.ppm"),
        help="Output image path (default: output/output.ppm)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the scene and the random streams (default: 0)",
    )
    parser.add_argument(
        "--arch",
        choices=ARCH_NAMES,
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--image",
        type=Path,
        default=None,
        help='Image wrapped around the globe in the "image" scene',
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display the rendered image in a Matplotlib window",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Only log warnings and hide the progress bar"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    """Build a validated render configuration from parsed arguments.

    Raises:
        ValueError: If any option is invalid.
    """
    width, height = args.dimensions
    return RenderConfig(
        width=width,
        height=height,
        samples_per_pixel=args.samples,
        scene=args.scene,
        output=args.output,
        seed=args.seed,
        arch=args.arch,
        image_path=args.image,
        batch_size=args.batch_size,
    )


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the root logger: INFO by default, DEBUG if verbose, WARNING if quiet."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run(config: RenderConfig, show_progress: bool = True, show: bool = False) -> Path:
    """Render the configured scene and save it.

    Taichi must already be initialized.

    Args:
        config: Validated render configuration.
        show_progress: Whether to draw a progress bar.
        show: Whether to display the result after saving.

    Returns:
        Path of the written image.
    """
    # Lazy imports so Taichi fields are created after ti.init
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.output.display import show_preview
    from pathtracer.output.export import save_image
    from pathtracer.scene.demo_scenes import load_scene

    scene, camera = load_scene(
        config.scene, config.width, config.height, seed=config.seed, image_path=config.image_path
    )
    scene.upload()
    setup_camera(camera)

    renderer = ProgressiveRenderer(config.width, config.height, seed=config.seed)
    logger.info(
        "Rendering '%s' at %dx%d, %d samples per pixel",
        config.scene,
        config.width,
        config.height,
        config.samples_per_pixel,
    )

    start_time = time.time()
    with tqdm(
        total=config.samples_per_pixel, desc="Rendering", unit="spp", disable=not show_progress
    ) as pbar:
        for current, _ in renderer.render_progressive(
            config.samples_per_pixel, batch_size=config.batch_size
        ):
            pbar.update(current - pbar.n)
    logger.info("Rendered in %.2fs", time.time() - start_time)

    image = renderer.get_image_uint8()
    save_image(config.output, image)

    if show:
        show_preview(image, title=f"{config.scene} - {config.samples_per_pixel} SPP")

    return config.output


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    ti.init(arch=ti.gpu if config.arch == "gpu" else ti.cpu)

    try:
        output = run(config, show_progress=not args.quiet, show=args.show)
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Saved to: {output.absolute()}")
    return 0
