import argparse
import logging
import sys
import textwrap
from functools import wraps
from pathlib import Path

from . import __version__
from .codec.key_path import InvalidKey
from .codec.payload import PayloadDecodeError
from .commands import (
    InvalidArgument, ListArgs, GetArgs, PutArgs, RemoveArgs, DumpArgs, UploadArgs, TarArgs, ZipArgs,
)
from .commands.transfer import upload_root
from .config import ToolConfig, ToolSettings, ConfigError
from .session import StoreSession
from .store import StoreError
from .utils.confirm import RemovalAborted, prompt_confirmation
from .utils.profiling import profile_main

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def needs_session(func):
    """Decorator for commands that talk to the store.

    The decorated function receives (session, args). The wrapper receives
    (config, args), opens the store and closes it again whatever happens.
    """
    @wraps(func)
    def wrapper(config: ToolConfig, args):
        with StoreSession(config) as session:
            return func(session, args)
    return wrapper


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='kvdump',
        description='A dump/restore tool for hierarchical key-value stores.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              kvdump ls -l cfg/
              kvdump dump -C backup cfg
              kvdump upload -C backup cfg
              kvdump tar -z -f backup.tar.gz cfg

            Environment variables:
              KVDUMP_ENDPOINTS   Comma separated store endpoints (default: kvdump.db)
              KVDUMP_TIMEOUT     Seconds to wait for a busy store
              KVDUMP_SETTINGS    Settings file (default: ~/.config/kvdump/settings.toml)
              KVDUMP_PROFILE     Directory to write cProfile data into
            ''').strip()
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '-e', '--endpoints',
        metavar='LIST',
        help='Comma separated store endpoints. Overrides KVDUMP_ENDPOINTS and the settings file.')
    parser.add_argument(
        '-T', '--timeout',
        type=float,
        metavar='SECONDS',
        help='Seconds to wait for a busy store endpoint (default: 5)')
    parser.add_argument(
        '--settings',
        metavar='PATH',
        help='Path to the TOML settings file')
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Turn on debug output')
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress info messages')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Write log messages to this file instead of standard error')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Overrides --debug and --quiet.')
    subparsers = parser.add_subparsers(
        dest='command',
        title='Commands',
        metavar='{list,get,put,remove,dump,upload,tar,zip}',
        help='Use "kvdump COMMAND --help" for command-specific help')

    parser_list = subparsers.add_parser(
        'list', aliases=['ls'],
        help='List keys',
        description='Lists the keys under each prefix, in ascending key order. Without a prefix, lists every key.')
    parser_list.add_argument('prefixes', nargs='*', metavar='PREFIX', help='Key prefixes to list')
    parser_list.add_argument('-l', '--long', action='store_true', help='Use long output (version and revisions)')
    parser_list.set_defaults(method=_list)

    parser_get = subparsers.add_parser(
        'get',
        help='Get keys',
        description='Writes the values of the given keys to standard output.',
        usage='kvdump get [-r] [--d64] key1 [key2...]')
    parser_get.add_argument('keys', nargs='*', metavar='KEY', help='Keys to get')
    parser_get.add_argument('--d64', action='store_true', help='Perform base64 decoding')
    parser_get.add_argument('-r', '--recursive', action='store_true', help='Get keys recursively')
    parser_get.set_defaults(method=_get)

    parser_put = subparsers.add_parser(
        'put',
        help='Put entry',
        description='Stores the content of a file, or of standard input with "-", under a key.',
        usage='kvdump put [--e64] <file|-> key')
    parser_put.add_argument('source', nargs='?', metavar='FILE', help='File to read, "-" for standard input')
    parser_put.add_argument('key', nargs='?', metavar='KEY', help='Key to write')
    parser_put.add_argument('--e64', action='store_true', help='Perform base64 encoding')
    parser_put.set_defaults(method=_put)

    parser_remove = subparsers.add_parser(
        'remove', aliases=['rm'],
        help='Remove keys',
        description='Removes keys (or directories of keys) from the store. Recursive removals, and keys ending '
                    'in the separator, ask for confirmation first unless --force is given.',
        usage='kvdump rm [-r] [-f] key1 [key2/ ...]')
    parser_remove.add_argument('keys', nargs='*', metavar='KEY', help='Keys or prefixes to remove')
    parser_remove.add_argument('-f', '--force', action='store_true', help='Remove without prompting')
    parser_remove.add_argument('-r', '--recursive', action='store_true', help='Delete recursively')
    parser_remove.set_defaults(method=_remove)

    parser_dump = subparsers.add_parser(
        'dump',
        help='Dump keys',
        description='Writes every key under the given prefixes as a file. A key ending in the separator is '
                    'written with a trailing ⁄ (FRACTION SLASH) instead.',
        usage='kvdump dump [-C <dir>] [--d64] [--strip] key1 [key2...]')
    parser_dump.add_argument('keys', nargs='*', metavar='KEY', help='Key prefixes to dump')
    parser_dump.add_argument('-C', '--directory', metavar='DIR', help='Dump keys into given directory')
    parser_dump.add_argument('--d64', action='store_true', help='Perform base64 decoding')
    parser_dump.add_argument('--strip', action='store_true', help='Strip path(s) of the key')
    parser_dump.set_defaults(method=_dump)

    parser_upload = subparsers.add_parser(
        'upload', aliases=['up'],
        help='Upload keys',
        description='Puts every regular file below the given paths into the store. Key names are the paths '
                    'relative to --directory (or as given), with --prefix prepended.',
        usage='kvdump upload [-C dir] [--prefix P] [--e64] dir1 [dir2...]')
    parser_upload.add_argument('paths', nargs='*', metavar='PATH', help='Files or directories to upload')
    parser_upload.add_argument('-C', '--directory', metavar='DIR', help='Load keys from the given directory')
    parser_upload.add_argument('--e64', action='store_true', help='Perform base64 encoding')
    parser_upload.add_argument('--prefix', default='', help='Prefix the keys on upload')
    parser_upload.set_defaults(method=_upload)

    parser_tar = subparsers.add_parser(
        'tar',
        help='Create TAR archive from keys',
        description='Streams every key under the given prefixes into a TAR archive. Without a prefix, archives '
                    'every key.',
        usage='kvdump tar [-f <file.tar>] [-z] key1 [key2...]')
    parser_tar.add_argument('keys', nargs='*', metavar='KEY', help='Key prefixes to archive')
    parser_tar.add_argument('-f', dest='file', metavar='FILE', help='Specify TAR filename (default: standard output)')
    parser_tar.add_argument('-z', dest='gzip', action='store_true', help='Compress archive (GZip)')
    parser_tar.add_argument('--d64', action='store_true', help='Perform base64 decoding')
    parser_tar.set_defaults(method=_tar)

    parser_zip = subparsers.add_parser(
        'zip',
        help='Create ZIP archive from keys',
        description='Writes every key under the given prefixes into a ZIP file. Without a prefix, archives every '
                    'key.',
        usage='kvdump zip -f <file.zip> key1 [key2...]')
    parser_zip.add_argument('keys', nargs='*', metavar='KEY', help='Key prefixes to archive')
    parser_zip.add_argument('-f', dest='file', metavar='FILE', help='Specify ZIP filename')
    parser_zip.add_argument('--d64', action='store_true', help='Perform base64 decoding')
    parser_zip.set_defaults(method=_zip)

    return parser


def configure_logging(config: ToolConfig):
    """Set up root logging once per process from the resolved configuration."""
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    options = {}
    if config.log_file:
        options['filename'] = config.log_file
    else:
        options['stream'] = sys.stderr

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        **options
    )


def check_arguments(args):
    """Reject missing or out-of-bounds arguments before the store is opened.

    Raises:
        InvalidArgument: A required argument is missing or an upload path leaves --directory
    """
    method = args.method
    if method in (_get, _remove, _dump) and not args.keys:
        raise InvalidArgument(f"must specify which keys to {args.command_name}")
    if method is _upload and not args.paths:
        raise InvalidArgument("must specify which directory to upload")
    if method is _upload and args.directory:
        for path in args.paths:
            upload_root(Path(args.directory), path)
    if method is _put and (not args.source or not args.key):
        raise InvalidArgument("must specify <file|-> <key>")
    if method is _zip and not args.file:
        raise InvalidArgument("must specify output file (-f file)")


def main(argv: list[str] | None = None, *, confirm=prompt_confirmation) -> int:
    """Run one invocation and return the process exit status.

    confirm is the confirmation capability handed to remove.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    args.command_name = {'ls': 'list', 'rm': 'remove', 'up': 'upload'}.get(args.command, args.command)
    args.confirm = confirm

    try:
        config = ToolConfig.resolve(
            ToolSettings.locate(args.settings),
            endpoints=args.endpoints,
            timeout=args.timeout,
            log_level=args.log_level,
            log_file=args.log_file,
            debug=args.debug,
            quiet=args.quiet)
    except (ConfigError, OSError, ValueError) as e:
        print(f"kvdump: configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(config)
    if config.log_level == 'DEBUG':
        logger.debug("Logging level set to DEBUG")

    try:
        check_arguments(args)
        args.method(config, args)
    except InvalidArgument as e:
        logger.error(f"{args.command_name}: {e}")
        return EXIT_USAGE
    except RemovalAborted:
        return EXIT_FAILURE
    except StoreError as e:
        logger.critical(f"Store failure: {e}")
        return EXIT_FAILURE
    except (PayloadDecodeError, InvalidKey) as e:
        logger.error(f"{args.command_name}: {e}")
        return EXIT_FAILURE
    except OSError as e:
        logger.error(f"{args.command_name}: {e}")
        return EXIT_FAILURE

    return EXIT_OK


@profile_main
def kvdump_main():
    sys.exit(main())


@needs_session
def _list(session: StoreSession, args):
    session.list(ListArgs(args.prefixes, long=args.long))


@needs_session
def _get(session: StoreSession, args):
    session.get(GetArgs(args.keys, recursive=args.recursive), decode=args.d64)


@needs_session
def _put(session: StoreSession, args):
    session.put(PutArgs(args.source, args.key), encode=args.e64)


@needs_session
def _remove(session: StoreSession, args):
    session.remove(RemoveArgs(args.keys, recursive=args.recursive), force=args.force, confirm=args.confirm)


@needs_session
def _dump(session: StoreSession, args):
    session.dump(DumpArgs(args.keys, directory=args.directory, strip=args.strip), decode=args.d64)


@needs_session
def _upload(session: StoreSession, args):
    session.upload(UploadArgs(args.paths, directory=args.directory, prefix=args.prefix), encode=args.e64)


@needs_session
def _tar(session: StoreSession, args):
    session.tar(TarArgs(args.keys, file=args.file, gzip=args.gzip), decode=args.d64)


@needs_session
def _zip(session: StoreSession, args):
    session.zip(ZipArgs(args.keys, file=args.file), decode=args.d64)


if __name__ == '__main__':
    kvdump_main()
