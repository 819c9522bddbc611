"""Command line interface for palettelab."""
import argparse
import json
import logging
import sys

from palettelab.accessibility import analyze_contrast
from palettelab.extraction import PaletteExtractor
from palettelab.gradient import build_gradient, optimize_gradient, stepped_variant
from palettelab.harmony import analyze_harmony_quality, generate_harmony
from palettelab.palette import PaletteBuilder, analyze_palette, optimize_palette
from palettelab.raster_ingest import load_image
from palettelab.saliency import SpectralResidualSaliency
from palettelab.types import (
    ExtractionConfig, GradientPurpose, GradientType, HarmonyType, PalettePurpose, PaletteStyle,
    PaletteError, RGBColor
)

logger = logging.getLogger(__name__)


def _choices(enum_type) -> list:
    return [member.name.lower() for member in enum_type]


def _member(enum_type, name: str):
    return enum_type[name.upper()]


def _emit(data: dict, as_json: bool, lines) -> None:
    if as_json:
        print(json.dumps(data, indent=2))
    else:
        for line in lines:
            print(line)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='palettelab',
        description='Extract, harmonize and check color palettes'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    extract = subparsers.add_parser('extract', help='Extract dominant colors from an image')
    extract.add_argument('input', type=str, help='Input image path')
    extract.add_argument(
        '-n', '--count',
        type=int,
        default=5,
        help='Number of colors to extract (default: 5)'
    )
    extract.add_argument(
        '--keep-dark',
        action='store_true',
        help='Keep near-black pixels (dark or letterboxed images)'
    )
    extract.add_argument(
        '--saliency',
        action='store_true',
        help='Weight pixels by spectral residual saliency'
    )
    extract.add_argument('--seed', type=int, default=None, help='Random seed for reproducible output')
    extract.add_argument(
        '--preset',
        type=str,
        choices=['fast', 'standard', 'quality'],
        default='standard',
        help='Analysis preset: fast (coarser grid), standard, quality (finer grid, more iterations)'
    )
    extract.add_argument('--json', action='store_true', help='Print JSON')

    harmony = subparsers.add_parser('harmony', help='Generate a color harmony from a seed color')
    harmony.add_argument('color', type=str, help='Seed color as hex, e.g. #FF8800')
    harmony.add_argument(
        '-t', '--type',
        type=str,
        choices=_choices(HarmonyType),
        default='complementary',
        help='Harmony type (default: complementary)'
    )
    harmony.add_argument('--json', action='store_true', help='Print JSON')

    contrast = subparsers.add_parser('contrast', help='Check WCAG contrast of a text/background pair')
    contrast.add_argument('text', type=str, help='Text color as hex')
    contrast.add_argument('background', type=str, help='Background color as hex')
    contrast.add_argument('--font-size', type=float, default=14.0, help='Font size in points (default: 14)')
    contrast.add_argument('--bold', action='store_true', help='Text is bold')
    contrast.add_argument('--json', action='store_true', help='Print JSON')

    gradient = subparsers.add_parser('gradient', help='Build a gradient from colors')
    gradient.add_argument('colors', type=str, nargs='+', help='Stop colors as hex')
    gradient.add_argument(
        '--type',
        type=str,
        choices=_choices(GradientType),
        default='linear',
        help='Gradient type (default: linear)'
    )
    gradient.add_argument('--angle', type=float, default=0.0, help='Angle in degrees (default: 0)')
    gradient.add_argument('--stepped', action='store_true', help='Hard bands instead of smooth blends')
    gradient.add_argument(
        '--optimize',
        type=str,
        choices=_choices(GradientPurpose),
        default=None,
        help='Optimize the gradient for a purpose'
    )
    gradient.add_argument('--json', action='store_true', help='Print JSON')

    palette = subparsers.add_parser('palette', help='Generate a styled palette from an image')
    palette.add_argument('input', type=str, help='Input image path')
    palette.add_argument(
        '-s', '--style',
        type=str,
        choices=_choices(PaletteStyle),
        default='adaptive',
        help='Palette style (default: adaptive)'
    )
    palette.add_argument('-n', '--count', type=int, default=5, help='Number of colors (default: 5)')
    palette.add_argument(
        '--optimize',
        type=str,
        choices=_choices(PalettePurpose),
        default=None,
        help='Optimize the palette for a purpose'
    )
    palette.add_argument('--json', action='store_true', help='Print JSON')

    return parser


def run_extract(args) -> int:
    extractor = PaletteExtractor(
        config=ExtractionConfig.preset(args.preset),
        saliency=SpectralResidualSaliency() if args.saliency else None,
        random_state=args.seed
    )
    result = extractor.extract(load_image(args.input), args.count, avoid_near_black=not args.keep_dark)

    lines = [f"Confidence: {result.confidence:.2f}"]
    lines += [f"  {color.to_hex()}  weight {weight:.1f}"
              for color, weight in zip(result.colors, result.cluster_weights)]
    if result.is_empty:
        lines.append("  (no colors found)")

    _emit(result.to_dict(), args.json, lines)
    return 0


def run_harmony(args) -> int:
    harmony_type = _member(HarmonyType, args.type)
    colors = generate_harmony(RGBColor.from_hex(args.color), harmony_type)
    analysis = analyze_harmony_quality(colors)

    data = {
        'type': harmony_type.value,
        'colors': [c.to_hex() for c in colors],
        'analysis': analysis.to_dict(),
    }
    lines = [f"{harmony_type.value}:"] + [f"  {c.to_hex()}" for c in colors]
    lines.append(f"Harmony score: {analysis.score:.1f} ({analysis.grade})")

    _emit(data, args.json, lines)
    return 0


def run_contrast(args) -> int:
    analysis = analyze_contrast(
        RGBColor.from_hex(args.text),
        RGBColor.from_hex(args.background),
        font_size=args.font_size,
        is_bold=args.bold
    )

    lines = [
        f"Contrast ratio: {analysis.ratio:.2f}:1 ({analysis.grade})",
        f"  AA:  {'pass' if analysis.passes_aa else 'fail'}",
        f"  AAA: {'pass' if analysis.passes_aaa else 'fail'}",
    ]
    lines += [f"  - {rec}" for rec in analysis.recommendations]

    _emit(analysis.to_dict(), args.json, lines)
    return 0


def run_gradient(args) -> int:
    colors = [RGBColor.from_hex(value) for value in args.colors]
    gradient = build_gradient(colors, _member(GradientType, args.type), args.angle)

    if args.stepped:
        gradient = stepped_variant(gradient)
    if args.optimize:
        gradient = optimize_gradient(gradient, _member(GradientPurpose, args.optimize))

    lines = [f"{gradient.type.value} gradient, angle {gradient.angle:g}"]
    lines += [f"  {loc:.3f}  {color.to_hex()}" for color, loc in zip(gradient.colors, gradient.locations)]

    _emit(gradient.to_dict(), args.json, lines)
    return 0


def run_palette(args) -> int:
    builder = PaletteBuilder()
    palette = builder.generate_palette(load_image(args.input), _member(PaletteStyle, args.style), args.count)

    if args.optimize:
        palette = optimize_palette(palette, _member(PalettePurpose, args.optimize))

    analysis = analyze_palette(palette)
    data = palette.to_dict()
    data['quality'] = analysis.overall_quality

    lines = [f"{palette.name} (confidence {palette.confidence:.2f})"]
    lines += [f"  {c.to_hex()}" for c in palette.colors]
    lines.append(f"Quality: {analysis.overall_quality}")

    _emit(data, args.json, lines)
    return 0


COMMANDS = {
    'extract': run_extract,
    'harmony': run_harmony,
    'contrast': run_contrast,
    'gradient': run_gradient,
    'palette': run_palette,
}


def main(args=None):
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s'
    )

    logger.debug(f"Running {parsed_args.command}")

    try:
        return COMMANDS[parsed_args.command](parsed_args)
    except (FileNotFoundError, PaletteError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
