"""
Lane Detection CLI - Command line interface for the PGM detection workflows.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional
import yaml

from lane_detection.core.errors import CalculationError, DecodeError

logger = logging.getLogger("lane_detection.cli")

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_DECODE = 2
EXIT_IO = 3
EXIT_CALCULATION = 4


def load_config(path: Optional[str]) -> Optional[Dict]:
    """Read a YAML configuration file; None keeps the built-in defaults."""
    if path is None:
        return None
    with open(path, 'r') as f:
        config = yaml.safe_load(f)
    if config is not None and not isinstance(config, dict):
        raise ValueError(f"Config {path} must be a mapping of sections")
    return config or None


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('input', type=str, help='Input PGM image')
    common.add_argument('-o', '--output', type=str, required=True, help='Output PGM path')
    common.add_argument('--config', type=str, default=None, help='YAML config file')
    common.add_argument('--preview', type=str, default=None,
                        help='Also write a viewable image (png, jpg, ...)')
    common.add_argument('--preview-scale', type=int, default=1, help='Preview upscaling')
    common.add_argument('-v', '--verbose', action='count', default=0,
                        help='More logging (-v info, -vv debug)')

    parser = argparse.ArgumentParser(
        prog='lane-detection',
        description='Lane Detection - classical line, lane and rail detection on PGM images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Invert an image
  lane-detection invert road.pgm -o inverted.pgm

  # Convolve with a preset or custom kernel
  lane-detection convolve road.pgm -o edges.pgm --kernel sobel
  lane-detection convolve road.pgm -o blur.pgm --kernel gauss --size 7
  lane-detection convolve road.pgm -o out.pgm --kernel custom --weights "0,-1,0;-1,4,-1;0,-1,0"

  # Run the full lane workflow and write a PNG preview
  lane-detection lanes road.pgm -o lanes.pgm --preview lanes.png

  # Rail detection with a custom configuration
  lane-detection rail track.pgm -o rails.pgm --config configs/default.yaml
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('histogram', parents=[common], help='Write the grey value histogram chart')
    subparsers.add_parser('invert', parents=[common], help='Invert the image')

    conv_parser = subparsers.add_parser('convolve', parents=[common], help='Convolve with a kernel')
    conv_parser.add_argument('--kernel', type=str, default='gauss',
                             choices=['gauss', 'kirsch', 'log', 'prewitt1', 'prewitt2',
                                      'sobel', 'sobel_vertical', 'custom'])
    conv_parser.add_argument('--size', type=int, default=3,
                             help='Kernel size for gauss (odd, 3-23)')
    conv_parser.add_argument('--weights', type=str, default=None,
                             help='Custom kernel rows, e.g. "1,2,1;0,0,0;-1,-2,-1"')
    rotate = conv_parser.add_mutually_exclusive_group()
    rotate.add_argument('--rotate', dest='rotate', action='store_true', default=None,
                        help='Also apply the kernel rotated by 90 degrees')
    rotate.add_argument('--no-rotate', dest='rotate', action='store_false', default=None,
                        help='Apply the kernel in one orientation only')

    subparsers.add_parser('lines', parents=[common], help='Detect straight lines')

    lanes_parser = subparsers.add_parser('lanes', parents=[common], help='Detect road lanes')
    lanes_parser.add_argument('--stage', type=str, default='all', choices=['1', '2', '3', 'all'],
                              help='Run a single lane stage or all of them')

    subparsers.add_parser('rail', parents=[common], help='Detect rail tracks')

    return parser


def build_kernel(args):
    from lane_detection.core.kernel import Kernel, preset

    if args.kernel == 'custom':
        if not args.weights:
            raise ValueError("--kernel custom requires --weights")
        return Kernel.parse(args.weights)
    return preset(args.kernel, args.size)


def run_command(system, image, args):
    """Apply the selected workflow; returns the image to save."""
    if args.command == 'histogram':
        return system.histogram(image)

    if args.command == 'invert':
        return system.invert(image)

    if args.command == 'convolve':
        kernel = build_kernel(args)
        return system.convolve(image, kernel, args.rotate)

    if args.command == 'lines':
        peaks = system.detect_lines(image)
        print(f"Detected {len(peaks)} lines")
        return image

    if args.command == 'lanes':
        if args.stage == '1':
            system.detect_lanes_stage1(image)
        elif args.stage == '2':
            peaks = system.detect_lanes_stage2(image)
            print(f"Detected {len(peaks)} lane line candidates")
        elif args.stage == '3':
            points = system.detect_lanes_stage3(image)
            print(f"Painted {len(points)} centerline marks")
        else:
            points = system.detect_lanes(image)
            print(f"Painted {len(points)} centerline marks")
        return image

    if args.command == 'rail':
        pair = system.detect_rail(image)
        print("Rails (theta, rho): " + ", ".join(str(p.key) for p in pair))
        return image

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USAGE

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    from lane_detection.core.system import LaneDetectionSystem

    try:
        config = load_config(args.config)
        with LaneDetectionSystem(config) as system:
            image = system.load(args.input)
            result = run_command(system, image, args)
            system.save(result, args.output)
            if args.preview:
                from lane_detection.visualization.preview import save_preview
                save_preview(result, args.preview, args.preview_scale)
    except DecodeError as e:
        logger.error("Cannot decode %s: %s", args.input, e)
        return EXIT_DECODE
    except CalculationError as e:
        logger.error("Calculation failed: %s", e)
        return EXIT_CALCULATION
    except OSError as e:
        logger.error("I/O error: %s", e)
        return EXIT_IO
    except yaml.YAMLError as e:
        logger.error("Invalid config %s: %s", args.config, e)
        return EXIT_USAGE
    except ValueError as e:
        logger.error("%s", e)
        return EXIT_USAGE

    print(f"Saved {Path(args.output)}")
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
