"""This is the main entrypoint for the application."""
import signal
import sys
from typing import Any
from loguru import logger
import utils.utilities as Utilities
from analysis.cancellation import CancellationToken
from analysis.models import AnalysisCancelled
from reporting.report_writer import ReportWriter
from runners.group_audit import AdGroupAudit, AuditError
from utils.ad_directory import AdDirectory
from utils.basic_config import BasicConfig
from utils.ldap_connections import LdapConnections
from utils.manage_argument_parser import ManageArguments, ManageParser

EXIT_FAILURE = 1
EXIT_CANCELLED = 2


def _configure_logging(args: ManageArguments, basic_config: dict[str, Any]) -> None:
    """Send logs to the console and to the rotating log file."""
    settings: dict[str, Any] = basic_config["config"]["settings"]
    logger.remove(0)  # Remove the default logger
    logger.add(
        sys.stdout,
        format="{time} {module} {level} {message}",
        level=args.console_log_level,
    )
    logger.add(
        f"{args.op_type}_{settings['log_file']}",
        format="{time} {module} {level} {message}",
        level=settings["log_file_level"],
        retention=settings["log_file_retention"],
        rotation=settings["log_file_rotation"],
    )


def _progress(processed: int, total: int, group_dn: str) -> None:
    percent = int(processed / total * 100) if total else 100
    logger.info(f"[{percent:3d}%] {processed}/{total} {group_dn}")


def _install_stop_handler(cancellation_token: CancellationToken) -> Any:
    """Make the first Ctrl-C cancel the analysis and a second one abort it.

    Returns
    -------
    Any
        The SIGINT handler that was installed before.
    """

    def _stop(signum: int, frame: Any) -> None:
        logger.warning(
            "Stop requested, finishing the current group ... "
            "press Ctrl-C again to abort"
        )
        signal.signal(signal.SIGINT, signal.default_int_handler)
        cancellation_token.cancel()

    return signal.signal(signal.SIGINT, _stop)


def list_scopes(audit: AdGroupAudit) -> None:
    """Log every OU that can be selected for analysis."""
    units = audit.list_scopes()
    for unit in units:
        logger.info(f"{unit.distinguished_name} ({unit.group_count} groups)")
    logger.info(f"Found {len(units)} organizational units")


def analyze(audit: AdGroupAudit, basic_config: dict[str, Any]) -> None:
    """Run the analysis over the selected OUs and write the reports."""
    args: ManageArguments = basic_config["args"]
    scope_ids = args.scopes
    if args.all_scopes:
        scope_ids = audit.list_scope_ids()
    cancellation_token = CancellationToken()
    previous_handler = _install_stop_handler(cancellation_token)
    try:
        result = audit.analyze_scopes(
            scope_ids,
            cancellation_token=cancellation_token,
            progress_callback=_progress,
        )
    finally:
        signal.signal(signal.SIGINT, previous_handler)
    if isinstance(result, AnalysisCancelled):
        logger.warning(
            f"Stopped after {result.processed_groups} of {result.total_groups} "
            "groups, no report written"
        )
        Utilities.write_monitoring_log(basic_config, False, args.op_type)
        sys.exit(EXIT_CANCELLED)
    ReportWriter(basic_config).write_reports(result, args.output_dir)
    Utilities.write_monitoring_log(basic_config, audit.run_status, args.op_type)


def entrypoint() -> None:
    """Simple entrypoint method."""
    args = ManageParser().parse_cli_args()

    basic_config = BasicConfig(args).create_basic_config()
    _configure_logging(args, basic_config)
    connection = LdapConnections().setup_ldap_connection(basic_config)
    audit = AdGroupAudit(basic_config, AdDirectory(basic_config, connection))
    try:
        if args.op_type == "list_scopes":
            logger.info("Listing organizational units ...")
            list_scopes(audit)
        elif args.op_type == "analyze":
            logger.info("Starting group health analysis ...")
            analyze(audit, basic_config)
    except AuditError as exc:
        logger.error(f"Analysis failed: {exc}")
        Utilities.write_monitoring_log(basic_config, False, args.op_type)
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        logger.warning("Interrupted, no report written")
        Utilities.write_monitoring_log(basic_config, False, args.op_type)
        sys.exit(EXIT_CANCELLED)
    finally:
        connection.unbind()
