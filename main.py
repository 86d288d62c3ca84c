#!/usr/bin/env python3
"""
Franklin - Evolutionary Image Approximation

Main entry point for the evolution engine.
Evolves a population of images toward a target picture until the display
window is closed, the generation limit is reached or the run is interrupted.
"""

import sys
import argparse
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from evoimage.config_loader import (
    DEFAULT_CONFIG,
    MIN_GENERATION_SIZE,
    load_config,
    merge_config,
    print_config_summary,
)
from ga_engine.crossover import CROSSOVERS
from ga_engine.fitness import FITNESS_FUNCTIONS
from ga_engine.mutation import MUTATORS


DISPLAY_ALL_INFO = (
    "Display best specimen from every generation. Conflicts with --display-every."
)
DISPLAY_EVERY_INFO = (
    "Display best specimen once per N generations. Conflicts with --display-all."
)
OUTPUT_DIRECTORY_INFO = (
    "Directory in which generated images are saved. It must exist. Has no "
    "effect unless --save-all or --save-every is given too."
)
SAVE_ALL_INFO = (
    "Save best specimen from every generation. Conflicts with --save-every. "
    "Has no effect without an output directory."
)
SAVE_EVERY_INFO = (
    "Save best specimen once per N generations. Conflicts with --save-all. "
    "Has no effect without an output directory."
)


def generation_size(value: str) -> int:
    """argparse type: population size of at least 3"""
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'")
    if size < MIN_GENERATION_SIZE:
        raise argparse.ArgumentTypeError(
            f"Generation size cannot be smaller than {MIN_GENERATION_SIZE}."
        )
    return size


def positive_int(value: str) -> int:
    """argparse type: strictly positive integer"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError("Generation gap must be a positive integer.")
    return number


def thread_count(value: str):
    """argparse type: positive integer or 'auto'"""
    if value == "auto":
        return value
    return positive_int(value)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Franklin - Evolutionary Image Approximation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py -i lenna.png --display-all                  # Watch the evolution live
  python3 main.py -i lenna.png -g 200 -t auto                 # Bigger population, all cores
  python3 main.py -i lenna.png --output-dir out --save-every 100
  python3 main.py -i lenna.png --mode grayscale -m circle -c arithmetic_average
  python3 main.py --config config.yaml --max-generations 5000 # YAML config, flags override
        """
    )

    parser.add_argument(
        '--config',
        metavar='FILE',
        help='Run configuration YAML file (command-line flags override its values)'
    )

    parser.add_argument(
        '--image', '-i',
        metavar='FILE',
        help='Path to the target image'
    )

    parser.add_argument(
        '--mode',
        choices=['rgb', 'grayscale'],
        help='Color mode of the evolution (default: rgb)'
    )

    parser.add_argument(
        '--mutator', '-m',
        choices=list(MUTATORS),
        help='Mutation strategy (default: rectangle)'
    )

    parser.add_argument(
        '--fitness', '-f',
        choices=list(FITNESS_FUNCTIONS),
        help='Fitness function (default: square_distance)'
    )

    parser.add_argument(
        '--crossover', '-c',
        choices=list(CROSSOVERS),
        help='Crossover function (default: left_or_right)'
    )

    parser.add_argument(
        '--generation', '-g',
        type=generation_size,
        metavar='N',
        help='Number of specimens in each generation (default: 100)'
    )

    parser.add_argument(
        '--threads', '-t',
        type=thread_count,
        metavar='N',
        help="Number of worker threads, or 'auto' for the CPU count (default: 1)"
    )

    display_group = parser.add_mutually_exclusive_group()
    display_group.add_argument('--display-all', action='store_true', help=DISPLAY_ALL_INFO)
    display_group.add_argument('--display-every', type=positive_int, metavar='N', help=DISPLAY_EVERY_INFO)

    parser.add_argument('--output-dir', metavar='DIR', help=OUTPUT_DIRECTORY_INFO)

    save_group = parser.add_mutually_exclusive_group()
    save_group.add_argument('--save-all', action='store_true', help=SAVE_ALL_INFO)
    save_group.add_argument('--save-every', type=positive_int, metavar='N', help=SAVE_EVERY_INFO)

    parser.add_argument(
        '--filename-prefix',
        metavar='PREFIX',
        help='Text put in front of the generation number of saved images'
    )

    parser.add_argument(
        '--seed',
        type=int,
        metavar='N',
        help='Random seed for reproducible runs'
    )

    parser.add_argument(
        '--max-generations',
        type=positive_int,
        metavar='N',
        help='Stop after N generations (default: run until the window is closed)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Do not print per-generation progress'
    )

    return parser


def build_run_config(args: argparse.Namespace) -> dict:
    """Build the run configuration: defaults, then YAML file, then flags"""
    if args.config:
        config = load_config(args.config)
    else:
        config = merge_config(DEFAULT_CONFIG, {})

    if args.image:
        config['image'] = args.image
    if args.mode:
        config['color_mode'] = args.mode

    strategies = config['strategies']
    if args.mutator:
        strategies['mutator'] = args.mutator
    if args.fitness:
        strategies['fitness'] = args.fitness
    if args.crossover:
        strategies['crossover'] = args.crossover

    generation = config['generation']
    if args.generation is not None:
        generation['size'] = args.generation
    if args.threads is not None:
        generation['threads'] = args.threads
    if args.max_generations is not None:
        generation['max_generations'] = args.max_generations

    if args.seed is not None:
        config['random_seed'] = args.seed

    if args.display_all:
        config['display'] = {'mode': 'all', 'every': None}
    elif args.display_every is not None:
        config['display'] = {'mode': 'every', 'every': args.display_every}

    output = config['output']
    if args.output_dir:
        output['directory'] = args.output_dir
    if args.filename_prefix is not None:
        output['filename_prefix'] = args.filename_prefix

    if args.save_all or args.save_every is not None:
        if output.get('directory'):
            output['save'] = 'all' if args.save_all else 'each'
            output['each'] = args.save_every
        else:
            print("Note: no output directory given, save flags have no effect")

    if args.quiet:
        config['verbose'] = False

    return config


def main():
    """Main entry point with command-line argument parsing"""
    parser = create_parser()
    args = parser.parse_args()

    try:
        config = build_run_config(args)
        if config.get('verbose', True):
            print_config_summary(config)

        from ga_engine.cli import run_config
        run_config(config)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
