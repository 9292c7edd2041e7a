"""This module is used to set up the argument parser."""
from argparse import ArgumentParser
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ManageArguments:
    """
    The data class for all the arguments.
    """

    config_file: str
    console_log_level: str
    op_type: str
    scopes: list[str] = field(default_factory=list)
    all_scopes: bool = False
    output_dir: str | None = None


class ManageParser:
    """
    This class is used to set up the argument parser.
    """

    @staticmethod
    def _add_config_file(parser: ArgumentParser) -> None:
        """Add main configuration file argument."""
        parser.add_argument(
            "--config_file",
            type=str,
            help="Config file.",
            default="config/config.yaml",
        )

    @staticmethod
    def _add_scope_selection(parser: ArgumentParser) -> None:
        """Add the mutually exclusive OU selection arguments."""
        selection = parser.add_mutually_exclusive_group(required=True)
        selection.add_argument(
            "--scope",
            nargs="+",
            default=[],
            dest="scopes",
            help="Distinguished names of the OUs to analyse.",
        )
        selection.add_argument(
            "--all_scopes",
            default=False,
            action="store_true",
            help="Analyse every OU found under the configured base.",
        )

    @staticmethod
    def _add_output_dir(parser: ArgumentParser) -> None:
        """Add output directory argument."""
        parser.add_argument(
            "--output_dir",
            type=str,
            default=None,
            help="Directory for the HTML and CSV reports (default: from config).",
        )

    @staticmethod
    def _add_console_log_level(parser: ArgumentParser) -> None:
        """Add console log level argument."""
        parser.add_argument(
            "--console_log_level",
            type=str,
            choices=["error", "warning", "info", "debug"],
            default="info",
            help="Console level configuration (default: %(default)s).",
        )

    def _build_parser(self) -> ArgumentParser:
        """Build the argument parser.

        Returns
        -------
        ArgumentParser object with all relevant arguments.
        """
        parser = ArgumentParser()
        subparsers = parser.add_subparsers(
            title="Operational types", required=True, dest="op_type"
        )
        list_scopes_parser = subparsers.add_parser(
            "list_scopes", help="List the OUs that can be analysed."
        )
        analyze_parser = subparsers.add_parser(
            "analyze", help="Analyse the groups of the selected OUs."
        )
        # Scope listing
        self._add_config_file(list_scopes_parser)
        self._add_console_log_level(list_scopes_parser)
        # Analysis
        self._add_config_file(analyze_parser)
        self._add_console_log_level(analyze_parser)
        self._add_scope_selection(analyze_parser)
        self._add_output_dir(analyze_parser)

        return parser

    def parse_cli_args(self) -> ManageArguments:
        """Parse the arguments.

        Returns
        -------
        ManageArguments object with all relevant arguments.
        """
        return self._parse_args()

    def _parse_args(self) -> ManageArguments:
        """Parse the arguments.

        Returns
        -------
        ManageArguments object with all relevant arguments.
        """
        return self._build_args(vars(self._build_parser().parse_args()))

    @staticmethod
    def _build_args(args: Dict[str, Any]) -> ManageArguments:
        """Build the arguments.

        Returns
        -------
        ManageArguments object with all relevant arguments.
        """
        output_dir = args.get("output_dir")
        return ManageArguments(
            config_file=str(args.get("config_file")),
            console_log_level=str(args.get("console_log_level")).upper(),
            op_type=str(args.get("op_type")),
            scopes=list(args.get("scopes") or []),
            all_scopes=bool(args.get("all_scopes")),
            output_dir=str(output_dir) if output_dir else None,
        )
