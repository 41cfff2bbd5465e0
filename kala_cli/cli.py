"""
Command-line interface for a remote Kala job scheduler.

Commands:
- stats:         Show scheduler-wide statistics
- create-job:    Create a job and print its id
- delete-job:    Delete a job
- list-jobs:     List the ids of all jobs
- describe-job:  Show a job, optionally with its run history (--stats)

Exit codes: 0 success, 1 remote or transport error, 2 the service refused
to delete a job, 255 bad command-line arguments.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO

from kala_cli import __version__
from kala_cli.client import SchedulerClient
from kala_cli.config import DEFAULT_ENDPOINT, ClientConfig
from kala_cli.errors import KalaCLIError, UsageError
from kala_cli.formatting import Presenter
from kala_cli.models import Job, is_non_negative_int

logger = logging.getLogger(__name__)

PROG = "kala-cli"

EXIT_OK = 0
EXIT_DELETE_FAILED = 2
EXIT_USAGE = UsageError.exit_code
EXIT_INTERRUPTED = 130


def setup_logging(log_file: str = None, verbose: bool = False):
    """Setup logging configuration. Log output never goes to stdout."""
    level = logging.DEBUG if verbose else logging.WARNING

    package_logger = logging.getLogger("kala_cli")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    package_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        package_logger.addHandler(file_handler)
        package_logger.setLevel(logging.DEBUG)


class CommandParser(argparse.ArgumentParser):
    """ArgumentParser that reports errors as UsageError instead of exiting with 2."""

    def error(self, message):
        _, _, command = self.prog.partition(" ")
        raise UsageError(message, command=command or None)


class Dispatcher:
    """
    Runs one command: validate, invoke the client, present the result.

    Holds the per-process configuration, client and presenter so that
    command handlers receive everything explicitly.
    """

    def __init__(self, config: ClientConfig, client: SchedulerClient, presenter: Presenter):
        self.config = config
        self.client = client
        self.presenter = presenter

    def dispatch(self, args: argparse.Namespace) -> int:
        handler = COMMANDS[args.command_name]
        logger.debug(f"Running {args.command_name} against {self.config.endpoint}")
        try:
            return handler(self, args)
        except KalaCLIError as e:
            logger.debug(f"{args.command_name} failed", exc_info=True)
            self.presenter.error(args.command_name, str(e))
            return e.exit_code


def _positionals(args: argparse.Namespace, expected: int, message: str) -> List[str]:
    if len(args.args) != expected:
        raise UsageError(message)
    return args.args


def cmd_stats(ctx: Dispatcher, args) -> int:
    """Show scheduler statistics."""
    _positionals(args, 0, "This command takes no arguments.")
    ctx.presenter.scheduler_stats(ctx.client.get_scheduler_stats())
    return EXIT_OK


def cmd_create_job(ctx: Dispatcher, args) -> int:
    """Create a job and print the id the service assigned."""
    name, schedule, command = _positionals(
        args, 3,
        "The first argument is a job name, the second is a schedule spec "
        "and the third is a command line to run."
    )
    if not is_non_negative_int(args.retries):
        raise UsageError("You cannot specify a negative value for --retries.")
    for label, value in (("job name", name), ("schedule spec", schedule), ("command line", command)):
        if not value.strip():
            raise UsageError(f"The {label} must not be empty.")

    job = Job(
        name=name,
        schedule=schedule,
        command=command,
        owner=args.owner if args.owner is not None else ctx.config.owner,
        retries=args.retries,
        epsilon=args.epsilon,
    )
    ctx.presenter.created(ctx.client.create_job(job))
    return EXIT_OK


def cmd_delete_job(ctx: Dispatcher, args) -> int:
    """Delete a job. A refusal by the service is a result, not an error."""
    job_id, = _positionals(args, 1, "The first argument is a job id.")
    ok = ctx.client.delete_job(job_id)
    ctx.presenter.delete_outcome(ok)
    return EXIT_OK if ok else EXIT_DELETE_FAILED


def cmd_list_jobs(ctx: Dispatcher, args) -> int:
    """Print one job id per line."""
    _positionals(args, 0, "This command takes no arguments.")
    ctx.presenter.job_ids(ctx.client.list_jobs())
    return EXIT_OK


def cmd_describe_job(ctx: Dispatcher, args) -> int:
    """
    Describe a job, optionally followed by its run history.

    Both requests complete before anything is printed, so a failed stats
    request leaves no partial description on stdout.
    """
    job_id, = _positionals(args, 1, "The first argument is a job id.")
    stats_for: Optional[str] = job_id if args.stats else None

    try:
        job = ctx.client.get_job(job_id)
    except KalaCLIError as e:
        raise e.prefixed(f"Could not retrieve job {job_id}")

    stats = None
    if stats_for is not None:
        try:
            stats = ctx.client.get_job_stats(stats_for)
        except KalaCLIError as e:
            raise e.prefixed(f"Could not retrieve statistics for job {stats_for}")

    ctx.presenter.job(job)
    if stats is not None:
        ctx.presenter.job_stats(stats)
    return EXIT_OK


COMMANDS: Dict[str, Callable[[Dispatcher, argparse.Namespace], int]] = {
    "stats": cmd_stats,
    "create-job": cmd_create_job,
    "delete-job": cmd_delete_job,
    "list-jobs": cmd_list_jobs,
    "describe-job": cmd_describe_job,
}


def build_parser() -> CommandParser:
    parser = CommandParser(
        prog=PROG,
        description="Command-Line Interface for the Kala job scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '-E', '--endpoint',
        type=str,
        help=f'Endpoint where the Kala API is running (default: {DEFAULT_ENDPOINT})'
    )
    parser.add_argument(
        '--timeout',
        type=str,
        help='Request timeout in seconds (default: 30)'
    )
    parser.add_argument(
        '-c', '--config',
        type=str,
        help='Path to a JSON configuration file'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Stats command
    stats_parser = subparsers.add_parser(
        'stats', aliases=['stat'], help="Display scheduler's statistics information"
    )
    stats_parser.add_argument('args', nargs='*', help=argparse.SUPPRESS)
    stats_parser.set_defaults(command_name='stats')

    # Create command
    create_parser = subparsers.add_parser(
        'create-job', help='Create a job',
        usage=f'{PROG} create-job [options] NAME SCHEDULE COMMAND'
    )
    create_parser.add_argument('args', nargs='*', metavar='NAME SCHEDULE COMMAND',
                               help='Job name, schedule spec and command line to run')
    create_parser.add_argument('--owner', type=str, default=None,
                               help="Email address of the job's owner (default: $USER)")
    create_parser.add_argument('--retries', type=int, default=0,
                               help='Number of times to retry on failed attempt for each run')
    create_parser.add_argument('--epsilon', type=str, default='',
                               help='Duration in which it is safe to retry the job')
    create_parser.set_defaults(command_name='create-job')

    # Delete command
    delete_parser = subparsers.add_parser('delete-job', help='Delete a job')
    delete_parser.add_argument('args', nargs='*', metavar='JOB_ID', help='Job id')
    delete_parser.set_defaults(command_name='delete-job')

    # List command
    list_parser = subparsers.add_parser('list-jobs', help='List all jobs')
    list_parser.add_argument('args', nargs='*', help=argparse.SUPPRESS)
    list_parser.set_defaults(command_name='list-jobs')

    # Describe command
    describe_parser = subparsers.add_parser('describe-job', help='Describe a job')
    describe_parser.add_argument('args', nargs='*', metavar='JOB_ID', help='Job id')
    describe_parser.add_argument('--stats', action='store_true',
                                 help='Display statistics information')
    describe_parser.set_defaults(command_name='describe-job')

    return parser


def run(
    argv: Optional[List[str]] = None,
    client: Optional[SchedulerClient] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None
) -> int:
    """
    Run one command and return the process exit code.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv[1:].
        client: Client to use instead of one built from the configuration
        stdout: Stream for results (default: sys.stdout)
        stderr: Stream for errors (default: sys.stderr)
    """
    presenter = Presenter(stdout, stderr, prog=PROG)
    parser = build_parser()

    try:
        args, extras = parser.parse_known_args(argv)
        if extras:
            raise UsageError(
                f"unrecognized arguments: {' '.join(extras)}",
                command=getattr(args, 'command_name', None)
            )
    except UsageError as e:
        presenter.error(e.command, str(e))
        return e.exit_code

    if not args.command:
        parser.print_help(presenter.stderr)
        return EXIT_USAGE

    setup_logging(log_file=args.log_file, verbose=args.verbose)

    try:
        config = ClientConfig.resolve(
            endpoint=args.endpoint,
            timeout=args.timeout,
            config_path=args.config
        )
    except UsageError as e:
        presenter.error(None, str(e))
        return e.exit_code

    if client is None:
        client = SchedulerClient(config)

    return Dispatcher(config, client, presenter).dispatch(args)


def main():
    """Main CLI entry point."""
    try:
        code = run()
    except KeyboardInterrupt:
        print(f"{PROG}: interrupted", file=sys.stderr)
        code = EXIT_INTERRUPTED
    sys.exit(code)


if __name__ == '__main__':
    main()
