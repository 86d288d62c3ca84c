#!/usr/bin/env python3
"""
Configuration Validation Tool

Validates YAML run configuration files for the evolution engine and
provides detailed feedback about parameter values and potential issues.
"""

import os
import sys
import argparse
from pathlib import Path
from typing import Any, Dict

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from evoimage.config_loader import load_config, resolve_thread_count
from evoimage.codec import DecodeError, ImageCodec
from ga_engine.cli import collect_run_config_issues
from ga_engine.stages import survivor_count


# Above this many pixels a single generation gets slow
LARGE_IMAGE_PIXELS = 512 * 512


class ConfigValidator:
    """Run configuration validator with detailed feedback"""

    def __init__(self):
        self.warnings = []
        self.errors = []
        self.recommendations = []

    def validate_comprehensive(self, config_path: str) -> Dict[str, Any]:
        """Perform comprehensive validation with detailed feedback"""
        try:
            config = load_config(config_path)
        except Exception as e:
            return {
                'valid': False,
                'errors': [f"Failed to load configuration: {e}"],
                'warnings': [],
                'recommendations': [],
                'summary': {}
            }

        self.warnings = []
        self.errors = []
        self.recommendations = []

        # Basic validation
        self.errors.extend(collect_run_config_issues(config))

        # Advanced validation
        pixels = self._validate_image(config.get('image'))
        self._validate_generation(config.get('generation', {}), pixels)
        self._validate_strategies(config)
        self._validate_outputs(config)

        summary = self._generate_summary(config, pixels)

        return {
            'valid': len(self.errors) == 0,
            'errors': self.errors,
            'warnings': self.warnings,
            'recommendations': self.recommendations,
            'summary': summary
        }

    def _validate_image(self, image_path):
        """Try to decode the target image; returns its pixel count or None"""
        if not image_path or not Path(image_path).is_file():
            return None

        try:
            target = ImageCodec().load(image_path)
        except DecodeError as e:
            self.errors.append(f"Target image cannot be decoded: {e}")
            return None

        pixels = len(target)
        if pixels > LARGE_IMAGE_PIXELS:
            self.warnings.append(
                f"Large target image ({target.width}x{target.height}) makes every generation slow"
            )
            self.recommendations.append("Downscale the target image before evolving it")
        return pixels

    def _validate_generation(self, generation: Dict[str, Any], pixels):
        size = generation.get('size')
        if not isinstance(size, int) or isinstance(size, bool):
            return

        if size < 10:
            self.warnings.append(f"Small generation size ({size}) explores few mutations per generation")
        elif size > 1000:
            self.warnings.append(f"Large generation size ({size}) makes every generation slow")

        if 100 <= size < 150:
            self.recommendations.append(
                f"Generation size {size} keeps only {survivor_count(size)} survivors; "
                f"150 or more keeps 3 or more"
            )

        threads = resolve_thread_count(generation.get('threads'))
        if isinstance(threads, int) and not isinstance(threads, bool) and threads > 0:
            cpus = os.cpu_count() or 1
            if threads > cpus:
                self.warnings.append(f"More threads ({threads}) than CPUs ({cpus})")
            if threads >= size:
                self.warnings.append(
                    f"Threads ({threads}) exceed the {size - 1} candidates evaluated per generation"
                )
            if threads == 1 and cpus > 1 and pixels is not None:
                self.recommendations.append("Set generation.threads to 'auto' to use every CPU")

        if generation.get('max_generations') is None:
            self.recommendations.append(
                "No max_generations set: the run only ends when the window is closed or the process is interrupted"
            )

    def _validate_strategies(self, config: Dict[str, Any]):
        strategies = config.get('strategies', {})
        if strategies.get('crossover') == 'left_or_right' and config.get('generation', {}).get('size', 0) < 100:
            self.recommendations.append(
                "left_or_right only clones parents; try equal_halves or uniform for more mixing"
            )

    def _validate_outputs(self, config: Dict[str, Any]):
        display = config.get('display', {})
        output = config.get('output', {})

        if display.get('mode') == 'none' and output.get('save') == 'never':
            self.warnings.append("Neither display nor save is enabled: the run produces no images")

        if output.get('save') == 'all':
            self.warnings.append("Saving every generation writes one file per generation")
            self.recommendations.append("Use output.save: each with output.each: 100 to save less often")

        if display.get('mode') == 'all':
            self.recommendations.append("Displaying every generation slows the run; consider display.mode: every")

    def _generate_summary(self, config: Dict[str, Any], pixels) -> Dict[str, Any]:
        """Generate configuration summary"""
        summary = {}

        generation = config.get('generation', {})
        size = generation.get('size')
        summary['generation'] = {
            'size': size,
            'survivors': survivor_count(size) if isinstance(size, int) and size >= 3 else 'n/a',
            'threads': generation.get('threads'),
            'max_generations': generation.get('max_generations') or 'unlimited',
        }

        summary['strategies'] = dict(config.get('strategies', {}))
        summary['strategies']['color_mode'] = config.get('color_mode')

        if pixels is not None:
            summary['image'] = {
                'path': config.get('image'),
                'pixels': pixels,
            }

        seed = config.get('random_seed')
        summary['reproducibility'] = {
            'random_seed': seed if seed is not None else 'random',
            'reproducible': seed is not None,
        }

        return summary


def main():
    """Main validation function"""
    parser = argparse.ArgumentParser(
        description="Validate YAML run configuration files for the evolution engine",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        default='config.yaml',
        help='Configuration file to validate (default: config.yaml)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed validation information'
    )

    parser.add_argument(
        '--warnings-only', '-w',
        action='store_true',
        help='Show only warnings and errors (no recommendations)'
    )

    args = parser.parse_args()

    validator = ConfigValidator()
    result = validator.validate_comprehensive(args.config_file)

    # Print results
    print("=" * 60)
    print("CONFIGURATION VALIDATION REPORT")
    print("=" * 60)
    print(f"File: {args.config_file}")
    print(f"Status: {'✅ VALID' if result['valid'] else '❌ INVALID'}")
    print()

    if result['errors']:
        print("🚨 ERRORS:")
        for error in result['errors']:
            print(f"  • {error}")
        print()

    if result['warnings']:
        print("⚠️  WARNINGS:")
        for warning in result['warnings']:
            print(f"  • {warning}")
        print()

    if result['recommendations'] and not args.warnings_only:
        print("💡 RECOMMENDATIONS:")
        for rec in result['recommendations']:
            print(f"  • {rec}")
        print()

    if result['summary'] and args.verbose:
        print("📊 SUMMARY:")
        for section, data in result['summary'].items():
            print(f"  {section.title()}:")
            for key, value in data.items():
                print(f"    {key}: {value}")
        print()

    # Quick stats
    if not args.verbose:
        generation = result['summary'].get('generation')
        if generation:
            print(f"Generation size: {generation['size']}, Survivors: {generation['survivors']}, "
                  f"Threads: {generation['threads']}")

    print("=" * 60)

    sys.exit(0 if result['valid'] else 1)


if __name__ == "__main__":
    main()
