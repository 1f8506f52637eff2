"""
Command-line interface for Sleuth - Go Dependency Vulnerability Auditor.

Two commands read `go list -m -json all` output from a file or stdin, and a
third writes credentials files:
- sleuth: audit dependencies against OSS Index
- iq: audit dependencies and evaluate them against Nexus IQ Server policy
- config: write OSS Index or IQ Server credentials
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from constants import (
    DEFAULT_EXCLUDE_FILE,
    DEFAULT_IQ_SERVER,
    DEFAULT_IQ_STAGE,
    DEFAULT_IQ_TOKEN,
    DEFAULT_IQ_USERNAME,
    DEFAULT_MAX_RETRIES,
    EXIT_INVALID_INPUT,
    EXIT_OK,
    EXIT_SERVICE_ERROR,
    EXIT_VULNERABLE,
)
from core.config import IQConfig, OSSIndexConfig
from core.exceptions import (
    ApplicationNotFound,
    ConfigurationException,
    RateLimited,
    SleuthException,
    ValidationException,
)
from core.models import DependencyProject
from core.orchestrator import AuditOrchestrator
from core.policy import policy_verdict_message
from outputs import FORMATTERS
from utils.exclusions import collect_exclusions
from utils.golist import parse_go_list
from utils.logging_helpers import log_error_section, log_warning_section
from utils.useragent import get_tool_version
from utils.validation import validate_file_path, validate_server_url

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(args: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-p", "--path", type=Path, help="File with `go list -m -json all` output (default: stdin).")
    # Shared with the top-level parser; SUPPRESS keeps a flag given before the command
    common.add_argument("--cache-dir", type=Path, default=argparse.SUPPRESS, help="Cache directory.")
    common.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable verbose logging.")

    parser = argparse.ArgumentParser(
        prog="sleuth",
        description="Sleuth - Go Dependency Vulnerability Auditor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_tool_version()}")
    parser.add_argument("--clean-cache", action="store_true", help="Remove cached audit results and exit.")
    parser.add_argument("--cache-dir", type=Path, help="Cache directory.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")

    subparsers = parser.add_subparsers(dest="command")

    # OSS Index audit
    audit_parser = subparsers.add_parser("sleuth", parents=[common], help="Audit dependencies with OSS Index.")
    audit_parser.add_argument("-u", "--username", help="OSS Index username.")
    audit_parser.add_argument("-t", "--token", help="OSS Index API token.")
    audit_parser.add_argument("-e", "--exclude-vulnerability", help="Comma separated list of CVEs/ids to exclude.")
    audit_parser.add_argument(
        "-x",
        "--exclude-vulnerability-file",
        type=Path,
        default=Path(DEFAULT_EXCLUDE_FILE),
        help="File with newline separated CVEs/ids to exclude.",
    )
    audit_parser.add_argument("-o", "--output", choices=sorted(FORMATTERS), default="text", help="Output format.")
    audit_parser.add_argument("-q", "--quiet", action="store_true", help="Only list vulnerable packages.")

    # IQ Server policy evaluation
    iq_parser = subparsers.add_parser("iq", parents=[common], help="Evaluate dependencies with Nexus IQ Server.")
    iq_parser.add_argument("-a", "--application", required=True, help="Public application id.")
    iq_parser.add_argument("-x", "--server-url", help="IQ Server base URL.")
    iq_parser.add_argument("-l", "--user", help="IQ Server username.")
    iq_parser.add_argument("-k", "--token", help="IQ Server token.")
    iq_parser.add_argument("-s", "--stage", default=DEFAULT_IQ_STAGE, help="Evaluation stage.")
    iq_parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Status polls before giving up.")

    # Credentials files
    config_parser = subparsers.add_parser("config", help="Write OSS Index or IQ Server credentials.")
    config_parser.add_argument("target", choices=["ossindex", "iq"], help="Which credentials to write.")
    config_parser.add_argument("-u", "--username", help="Username (prompted for when omitted).")
    config_parser.add_argument("-t", "--token", help="Token (prompted for when omitted).")
    config_parser.add_argument("-x", "--server-url", help="IQ Server base URL (iq only, prompted for when omitted).")
    config_parser.add_argument("--file", type=Path, help="Write to this file instead of the default location.")

    parsed = parser.parse_args(args)
    if not parsed.clean_cache and parsed.command is None:
        parser.error("a command is required (sleuth, iq or config), or --clean-cache")
    return parsed


def _read_projects(path: Optional[Path], stdin: Optional[TextIO]) -> list[DependencyProject]:
    if path is not None:
        validate_file_path(path, must_exist=True)
        text = path.read_text()
    else:
        text = (stdin or sys.stdin).read()
    return parse_go_list(text)


def _oss_index_config(args: argparse.Namespace) -> OSSIndexConfig:
    kwargs = {}
    if args.cache_dir:
        kwargs["cache_dir"] = args.cache_dir
    config = OSSIndexConfig.load(
        username=getattr(args, "username", None),
        token=getattr(args, "token", None) if args.command == "sleuth" else None,
        **kwargs,
    )
    config.validate()
    return config


def run_clean_cache(args: argparse.Namespace) -> int:
    """Remove the result cache."""
    orchestrator = AuditOrchestrator.from_config(_oss_index_config(args))
    orchestrator.clean_cache()
    return EXIT_OK


def run_audit(args: argparse.Namespace, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    """Audit dependencies with OSS Index and print the report."""
    stdout = stdout or sys.stdout
    projects = _read_projects(args.path, stdin)
    exclusions = collect_exclusions(args.exclude_vulnerability, args.exclude_vulnerability_file)

    orchestrator = AuditOrchestrator.from_config(_oss_index_config(args))
    report = orchestrator.run(projects, exclusions)

    formatter_class = FORMATTERS[args.output]
    formatter = formatter_class(quiet=args.quiet) if args.output == "text" else formatter_class()
    stdout.write(formatter.format(report))

    return EXIT_VULNERABLE if report.has_vulnerabilities else EXIT_OK


def run_iq(args: argparse.Namespace, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    """Submit dependencies to IQ Server and print the policy verdict."""
    stdout = stdout or sys.stdout
    projects = _read_projects(args.path, stdin)

    iq_config = IQConfig.load(
        application=args.application,
        server=args.server_url,
        username=args.user,
        token=args.token,
        stage=args.stage,
        max_retries=args.max_retries,
    )
    iq_config.validate()

    orchestrator = AuditOrchestrator.from_config(_oss_index_config(args), iq_config)
    report = orchestrator.run(projects)
    result = orchestrator.submit_for_policy(projects, iq_config.application, iq_config.stage, report=report)

    stdout.write(f"{policy_verdict_message(result)}\n")
    if result.absolute_report_url:
        stdout.write(f"Report URL: {result.absolute_report_url}\n")

    if result.is_error:
        return EXIT_SERVICE_ERROR
    if result.is_policy_failure:
        return EXIT_VULNERABLE
    return EXIT_OK


def _prompt(question: str, stdin: TextIO, stdout: TextIO, default: str = "") -> str:
    stdout.write(question)
    stdout.flush()
    return stdin.readline().strip() or default


def run_config(args: argparse.Namespace, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    """Write OSS Index or IQ Server credentials, prompting for values not given as flags."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    if args.target == "iq":
        config = IQConfig(
            server=args.server_url or _prompt(
                f"What is the address of your Nexus IQ Server (default: {DEFAULT_IQ_SERVER})? ",
                stdin, stdout, DEFAULT_IQ_SERVER,
            ),
            username=args.username or _prompt(
                f"What username do you want to authenticate as (default: {DEFAULT_IQ_USERNAME})? ",
                stdin, stdout, DEFAULT_IQ_USERNAME,
            ),
            token=args.token or _prompt(
                f"What token do you want to use (default: {DEFAULT_IQ_TOKEN})? ",
                stdin, stdout, DEFAULT_IQ_TOKEN,
            ),
        )
        config.server = validate_server_url(config.server, "server")
        if config.uses_default_credentials:
            log_warning_section(
                "Default Nexus IQ Server credentials saved",
                [
                    "You are using the default username and/or token for Nexus IQ Server.",
                    "You are strongly encouraged to change these and use a token.",
                ],
                logger=logger,
            )
    else:
        config = OSSIndexConfig(
            username=args.username or _prompt("What username do you want to authenticate as (ex: admin)? ", stdin, stdout),
            token=args.token or _prompt("What token do you want to use? ", stdin, stdout),
        )
        config.validate()

    path = config.save(args.file)
    stdout.write(f"Successfully wrote config to: {path}\n")
    return EXIT_OK


def run(args: argparse.Namespace, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    """
    Run the selected command and map failures to exit codes.

    Returns:
        0 clean, 1 vulnerable or policy failure, 2 invalid input, 3 service failure
    """
    try:
        if args.clean_cache:
            return run_clean_cache(args)
        if args.command == "config":
            return run_config(args, stdin, stdout)
        if args.command == "iq":
            return run_iq(args, stdin, stdout)
        return run_audit(args, stdin, stdout)
    except (ValidationException, ConfigurationException, ApplicationNotFound) as e:
        logger.error(str(e))
        return EXIT_INVALID_INPUT
    except RateLimited as e:
        log_error_section(
            "Rate limited by OSS Index",
            [str(e)],
            logger=logger,
        )
        return EXIT_SERVICE_ERROR
    except SleuthException as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_SERVICE_ERROR


def main_dispatch(argv: Optional[list[str]] = None):
    """Main entry point with subcommand routing."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    sys.exit(run(args))


if __name__ == "__main__":
    main_dispatch()
