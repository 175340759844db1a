"""Command line entry point: ``sysdecl {show,apply} MANIFEST``."""
import argparse
import logging
import sys

from . import __version__
from .errors import (
    CommandError,
    DependencyCycleError,
    DuplicateDeclarationError,
    ManifestError,
    ValidationError,
)
from .manifest import load
from .providers import apply_catalog

logger = logging.getLogger(__name__)


def setup_logging(verbose: int = 0):
    """Set up logging to stderr."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def show(catalog, out=None):
    """Print the resources of `catalog` in the order they are applied"""
    if out is None:
        out = sys.stdout
    for resource in catalog.ordered():
        out.write(f'# {resource.ref}\n')
        if resource.type == 'UnitFile' and resource.ensure == 'present':
            out.write(resource.render())
        elif resource.type == 'File' and resource.content is not None:
            out.write(resource.content.rstrip('\n') + '\n')
        elif resource.type == 'Service':
            out.write(f'running={resource.ensure} enabled={resource.enable}\n')
        elif resource.type == 'Exec':
            out.write(' '.join(resource.command) + '\n')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='sysdecl',
        description='Declare systemd timers and tmpfiles from a manifest')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='log changes (-v) or every check (-vv)')
    commands = parser.add_subparsers(dest='command', required=True)

    show_parser = commands.add_parser(
        'show', help='print the resources in the order they are applied')
    show_parser.add_argument('manifest', help='path to a YAML manifest')

    apply_parser = commands.add_parser(
        'apply', help='bring the host in line with the manifest')
    apply_parser.add_argument('manifest', help='path to a YAML manifest')
    apply_parser.add_argument('--noop', action='store_true',
                              help='only report what would change')
    apply_parser.add_argument('--user', action='store_true',
                              help='manage units of the user manager')
    apply_parser.add_argument('--unit-path', default=None,
                              help='directory to write unit files to')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        catalog = load(args.manifest)
        if args.command == 'show':
            show(catalog)
            return 0
        report = apply_catalog(catalog,
                               manager='--user' if args.user else '--system',
                               noop=args.noop,
                               unit_path=args.unit_path)
    except (ValidationError, ManifestError, DuplicateDeclarationError,
            DependencyCycleError, CommandError) as err:
        logger.error('%s', err)
        return 1
    for ref in report.changed:
        print(f'{"would change" if report.noop else "changed"}: {ref}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
