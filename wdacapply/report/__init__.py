from wdacapply.config import Config
from wdacapply.report.common import ReportFormatter
from wdacapply.report.json import JSONReportFormatter
from wdacapply.report.plain import PlainReportFormatter
from wdacapply.types.reports import DeploymentReport, ReportFormat


def report_formatter_factory(
    config: Config, report: DeploymentReport
) -> ReportFormatter:
    match config.report_format:
        case ReportFormat.PLAIN:
            return PlainReportFormatter(config, report)
        case ReportFormat.JSON:
            return JSONReportFormatter(config, report)
        case _:
            raise ValueError(f"Invalid report format {config.report_format!r}")
