"""
Command line interface.

Every subcommand is one pipeline stage: it builds a lattice from a pattern or
reads one (from a file argument or stdin), transforms it and writes the
result to stdout, so stages compose with shell pipes::

    vlattice bcc -a 2.87 | vlattice expand -x 10 -y 10 -z 10 \\
        | vlattice alloy A -t Fe+ 50 --seed 1 | vlattice into xyz

On failure a diagnostic goes to stderr, nothing goes to stdout and the exit
status is 1.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from . import __version__
from .config import Settings, load_settings
from .core.lattice import Lattice, Pattern, create_lattice
from .errors import FormatError, LatticeError
from .io import FORMATS, dumps, loads, render
from .transforms import Mask, alloy_mixture, apply_mask, drop_periodic, expand, merge
from .utils.log import configure_logging
from .utils.vectors import Axis

logger = logging.getLogger(__name__)

USAGE = "vlattice builds and transforms lattice graphs for spin simulations."


def read(source: Optional[str]) -> Lattice:
    """Read a lattice from a file, or from stdin when source is None or '-'."""
    name = 'stdin' if source is None or source == '-' else source
    try:
        if name == 'stdin':
            text = sys.stdin.read()
        else:
            text = Path(source).read_text(encoding='utf-8')
    except UnicodeDecodeError as exc:
        raise FormatError(f"Input from {name} is not valid UTF-8 text") from exc
    return loads(text)


def write(lattice: Lattice) -> str:
    return dumps(lattice) + '\n'


def _seed(args: argparse.Namespace, settings: Settings) -> int:
    seed = args.seed if args.seed is not None else settings.seed
    if seed is None:
        seed = int(np.random.SeedSequence().entropy % (2 ** 32))
        logger.warning(f"No seed given, using seed {seed}")
    return seed


# Commands over here

def cmd_pattern(args, settings: Settings) -> str:
    a = args.a if args.a is not None else settings.lattice_parameter
    return write(create_lattice(args.name, a=a))


def cmd_check(args, settings: Settings) -> str:
    return write(read(args.input))


def cmd_pretty(args, settings: Settings) -> str:
    return dumps(read(args.input), pretty=True, indent=settings.indent) + '\n'


def cmd_expand(args, settings: Settings) -> str:
    lattice = read(args.input)
    return write(expand(lattice, (args.x, args.y, args.z), progress=args.progress))


def cmd_drop(args, settings: Settings) -> str:
    lattice = read(args.input)
    for axis in Axis:
        if getattr(args, axis.label):
            lattice = drop_periodic(lattice, axis)
    return write(lattice)


def cmd_alloy(args, settings: Settings) -> str:
    targets = dict(args.target)
    lattice = read(args.input)
    rng = np.random.default_rng(_seed(args, settings))
    return write(alloy_mixture(lattice, args.source, targets, rng, strict=not args.lenient))


def cmd_merge(args, settings: Settings) -> str:
    return write(merge(read(args.first), read(args.second), atol=settings.tolerance))


def cmd_mask(args, settings: Settings) -> str:
    mask = Mask.from_image(args.mask, ppu=args.ppu)
    lattice = read(args.input)
    rng = np.random.default_rng(_seed(args, settings))
    return write(apply_mask(lattice, mask, rng))


def cmd_into(args, settings: Settings) -> str:
    return render(read(args.input), args.format)


def cmd_plot(args, settings: Settings) -> None:
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt
    from .visualization import plot_lattice

    lattice = read(args.input)
    fig, ax = plt.subplots(figsize=(6, 6))
    plot_lattice(lattice, ax=ax, plane=args.plane)
    fig.savefig(args.output, bbox_inches='tight', dpi=args.dpi)
    plt.close(fig)
    logger.info(f"Saved plot to {args.output}")
    return None


def _input_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('input', nargs='?', default=None,
                        help="Input file (default: read stdin)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='vlattice', description=USAGE)
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help="Log progress to stderr (-vv for debug output)")
    parser.add_argument('--config', default=None, help="JSON settings file")
    subparsers = parser.add_subparsers(dest='command', required=True)

    pattern = subparsers.add_parser('pattern', help="Build a preset unit cell")
    pattern.add_argument('name', choices=[p.value for p in Pattern])
    pattern.add_argument('-a', '--lattice-parameter', dest='a', type=float, default=None,
                         help="Lattice parameter")
    pattern.set_defaults(handler=cmd_pattern)

    for name, about in (('sc', "Simple cubic lattice"),
                        ('bcc', "Body centered cubic lattice"),
                        ('fcc', "Face centered cubic lattice")):
        shortcut = subparsers.add_parser(name, help=about)
        shortcut.add_argument('-a', '--lattice-parameter', dest='a', type=float, default=None,
                              help="Lattice parameter")
        shortcut.set_defaults(handler=cmd_pattern, name=name)

    check = subparsers.add_parser('check', help="Validate a lattice and write it back compactly")
    _input_argument(check)
    check.set_defaults(handler=cmd_check)

    pretty = subparsers.add_parser('pretty', help="Pretty print a lattice")
    _input_argument(pretty)
    pretty.set_defaults(handler=cmd_pretty)

    expand_cmd = subparsers.add_parser('expand', help="Tile a lattice into a supercell")
    _input_argument(expand_cmd)
    for axis in Axis:
        expand_cmd.add_argument(f"-{axis.label}", f"--along-{axis.label}", dest=axis.label,
                                type=int, default=1,
                                help=f"Number of tiles along {axis.label} (default: 1)")
    expand_cmd.add_argument('--progress', action='store_true', help="Show a progress bar")
    expand_cmd.set_defaults(handler=cmd_expand)

    drop = subparsers.add_parser('drop', help="Drop periodic boundary conditions")
    _input_argument(drop)
    for axis in Axis:
        drop.add_argument(f"-{axis.label}", f"--along-{axis.label}", dest=axis.label,
                          action='store_true',
                          help=f"Drop periodic boundary conditions along {axis.label}")
    drop.set_defaults(handler=cmd_drop)

    alloy_cmd = subparsers.add_parser('alloy', help="Substitute a share of one species")
    alloy_cmd.add_argument('source', help="Source kind")
    _input_argument(alloy_cmd)
    alloy_cmd.add_argument('-t', '--target', nargs=2, action='append', required=True,
                           metavar=('KIND', 'PERCENT'),
                           help="Target kind and the percentage of source sites it receives")
    alloy_cmd.add_argument('--seed', type=int, default=None, help="Random seed")
    alloy_cmd.add_argument('--lenient', action='store_true',
                           help="Pass the lattice through when no source site exists")
    alloy_cmd.set_defaults(handler=cmd_alloy)

    merge_cmd = subparsers.add_parser('merge', help="Union of two lattices with the same cell")
    merge_cmd.add_argument('first', help="First lattice file ('-' for stdin)")
    merge_cmd.add_argument('second', help="Second lattice file ('-' for stdin)")
    merge_cmd.set_defaults(handler=cmd_merge)

    mask = subparsers.add_parser('mask', help="Remove sites using an image alpha channel")
    mask.add_argument('mask', help="Mask image")
    _input_argument(mask)
    mask.add_argument('-p', '--ppu', type=float, default=10.0, help="Pixels per unit")
    mask.add_argument('--seed', type=int, default=None, help="Random seed")
    mask.set_defaults(handler=cmd_mask)

    into = subparsers.add_parser('into', help="Convert a lattice into an output format")
    into.add_argument('format', choices=list(FORMATS))
    _input_argument(into)
    into.set_defaults(handler=cmd_into)

    plot = subparsers.add_parser('plot', help="Save a projection plot of a lattice")
    _input_argument(plot)
    plot.add_argument('-o', '--output', required=True, help="Image file to write")
    plot.add_argument('--plane', choices=['xy', 'xz', 'yz'], default='xy')
    plot.add_argument('--dpi', type=int, default=150)
    plot.set_defaults(handler=cmd_plot)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
        if args.verbose:
            configure_logging(logging.DEBUG if args.verbose > 1 else logging.INFO)
        else:
            configure_logging(settings.log_level)
        output = args.handler(args, settings)
    except (LatticeError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if exc.__cause__ is not None:
            print(f"Cause: {exc.__cause__}", file=sys.stderr)
        return 1

    if output is not None:
        sys.stdout.write(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
