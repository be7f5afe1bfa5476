import argparse
import logging
import random

from wfcgen import (
    BASES,
    MAX_RETRIES,
    MODEL_KINDS,
    FfmpegWriter,
    create_wfc,
    generate_with_retries,
    load_image,
    save_image,
)

log = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="wfcgen",
        description="Generate an image that locally resembles a source image.",
    )
    parser.add_argument("input", help="source image")
    parser.add_argument("output", help="where to write the generated image")
    parser.add_argument("-d", "--dims", nargs="+", type=int, default=[64])
    parser.add_argument("-m", "--model", choices=MODEL_KINDS, default="simple-pixel")
    parser.add_argument("-b", "--basis", choices=list(BASES), default="cardinal")
    parser.add_argument(
        "-p", "--periodic", action=argparse.BooleanOptionalAction, default=True
    )
    parser.add_argument(
        "--periodic-input",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="treat the source as periodic (defaults to --periodic)",
    )
    parser.add_argument("-t", "--tile-size", type=int, default=3)
    parser.add_argument("-r", "--retries", type=int, default=MAX_RETRIES)
    parser.add_argument("-s", "--seed", type=int, default=None)
    parser.add_argument("--video", default=None, help="write generation progress to this file")
    parser.add_argument("--skip", type=int, default=1)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    args.dims = args.dims[:2]
    if len(args.dims) == 1:
        args.dims = args.dims * 2
    return args


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    image = load_image(args.input)
    log.info(f"[model] loaded {args.input} ({image.shape[1]}x{image.shape[0]})")

    wfc = create_wfc(
        image,
        args.dims,
        kind=args.model,
        tile_size=args.tile_size,
        basis=BASES[args.basis],
        periodic=args.periodic,
        periodic_input=args.periodic_input,
    )
    log.info(f"[model] {wfc.model}, output {wfc.width}x{wfc.height} cells")

    writer = None
    if args.video:
        n = wfc.model.tile_size
        writer = FfmpegWriter(args.video, (wfc.height * n, wfc.width * n), skip=args.skip)

    rng = random.Random(args.seed).random
    try:
        success = generate_with_retries(
            wfc,
            rng,
            retries=args.retries,
            callback=writer.write if writer else None,
        )
    finally:
        if writer:
            writer.close()

    if not success:
        return 1

    width, height = args.dims
    log.info(f"writing {args.output}")
    save_image(args.output, wfc.generated_image()[:height, :width])
    return 0
