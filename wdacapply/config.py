from argparse import Action, ArgumentParser, Namespace, RawTextHelpFormatter
from collections.abc import Sequence
from dataclasses import dataclass
from logging import DEBUG, INFO
from pathlib import Path
from tempfile import mkdtemp
from typing import Any

from wdacapply.host import default_system_root
from wdacapply.types.reports import ReportFormat

BLOCKLIST_URL = "https://aka.ms/VulnerableDriverBlockList"


class ExtendListAction(Action):
    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Namespace,
        values: str | Sequence[Any] | None,
        option_string: str | None = None,
    ) -> None:
        del parser
        del option_string
        if not values:
            return
        if not hasattr(namespace, self.dest):
            setattr(namespace, self.dest, [])
        getattr(namespace, self.dest).extend(values)


@dataclass(kw_only=True, frozen=True)
class Config:
    log_level: int
    log_levels: dict[str, int]
    work_dir: Path
    keep_work_dir: bool
    powershell_path: Path
    citool_path: Path

    xml_policy: Path | None
    enforce: bool
    auto: bool
    refresh: bool
    blocklist_url: str
    timeout: float
    system_root: Path

    report_format: ReportFormat
    output: Path | None

    @staticmethod
    def _build_parser(version: str) -> ArgumentParser:
        parser = ArgumentParser(
            description="Deploy a Windows Defender Application Control policy - "
            "compile a policy XML or fetch the Microsoft vulnerable driver block list "
            "and install it into the code integrity policy directory",
            formatter_class=RawTextHelpFormatter,
        )
        parser.register("action", "extend", ExtendListAction)

        parser.add_argument(
            "-V", "--version", action="version", version=version, help="Show version"
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            default=False,
            help="Verbose program output",
        )
        parser.add_argument(
            "--verbose-filter",
            action="extend",
            type=lambda string: string.split(","),
            default=[],
        )
        parser.add_argument(
            "--workdir",
            action="store",
            type=Path,
            help="Directory to be used for the working policy copy and compiled binaries.\n"
            "This directory should be empty and will be deleted if not specified otherwise.\n"
            "Default: `mktemp -d`.",
        )
        parser.add_argument(
            "--keep-workdir",
            action="store_true",
            default=False,
            help="Do not clean working directory upon exit.",
        )
        parser.add_argument(
            "--powershell",
            action="store",
            type=Path,
            default=Path("powershell.exe"),
            help="Path to the Windows PowerShell binary providing the ConfigCI module.\n"
            "Default: 'powershell.exe'.",
        )
        parser.add_argument(
            "--citool",
            action="store",
            type=Path,
            default=Path("CiTool.exe"),
            help="Path to the CiTool binary used to refresh policies.\n"
            "Default: 'CiTool.exe'.",
        )

        deploy_options = parser.add_argument_group("Deploy options")
        deploy_options.add_argument(
            "-xmlpolicy",
            "--xml-policy",
            action="store",
            dest="xml_policy",
            type=Path,
            default=None,
            help="Policy XML to compile and deploy. A copy of the deployed XML is saved\n"
            "next to it with the '-applied.xml' suffix.",
        )
        deploy_options.add_argument(
            "-enforce",
            "--enforce",
            action="store_true",
            default=False,
            help="Deploy the policy in enforce mode. Without this option the policy\n"
            "is deployed in audit mode.",
        )
        deploy_options.add_argument(
            "-auto",
            "--auto",
            action="store_true",
            default=False,
            help="Download and deploy the Microsoft vulnerable driver block list\n"
            "instead of a local policy XML.",
        )
        deploy_options.add_argument(
            "--refresh",
            action="store_true",
            default=False,
            help="Activate the deployed policy without a reboot.",
        )
        deploy_options.add_argument(
            "--blocklist-url",
            action="store",
            default=BLOCKLIST_URL,
            help=f"Location of the vulnerable driver block list archive.\n"
            f"Default: '{BLOCKLIST_URL}'.",
        )
        deploy_options.add_argument(
            "--timeout",
            action="store",
            type=float,
            default=60.0,
            help="Block list download timeout in seconds.\nDefault: 60.",
        )
        deploy_options.add_argument(
            "--system-root",
            action="store",
            type=Path,
            default=default_system_root(),
            help="Windows directory containing System32\\CodeIntegrity.\n"
            "Default loaded from %%SystemRoot%%.",
        )

        report_options = parser.add_argument_group("Report options")
        report_options.add_argument(
            "--format",
            action="store",
            type=ReportFormat,
            default=ReportFormat.PLAIN,
            help="Report format, possible values: plain, json\nDefault: plain",
        )
        report_options.add_argument(
            "--output",
            action="store",
            type=Path,
            default=None,
            help="Output the deployment report to this file.\nDefault: stdout",
        )
        return parser

    @staticmethod
    def parse_args(
        version: str, argv: Sequence[str] | None = None
    ) -> "Config | None":
        parser = Config._build_parser(version)
        parsed_args = parser.parse_args(argv)

        if parsed_args.xml_policy is None and not parsed_args.auto:
            parser.print_help()
            return None

        return Config(
            log_level=DEBUG if parsed_args.verbose else INFO,
            log_levels=dict((f, DEBUG) for f in parsed_args.verbose_filter),
            work_dir=parsed_args.workdir if parsed_args.workdir else Path(mkdtemp()),
            keep_work_dir=parsed_args.keep_workdir,
            powershell_path=parsed_args.powershell,
            citool_path=parsed_args.citool,
            xml_policy=parsed_args.xml_policy,
            enforce=parsed_args.enforce,
            auto=parsed_args.auto,
            refresh=parsed_args.refresh,
            blocklist_url=parsed_args.blocklist_url,
            timeout=parsed_args.timeout,
            system_root=parsed_args.system_root,
            report_format=parsed_args.format,
            output=parsed_args.output,
        )
