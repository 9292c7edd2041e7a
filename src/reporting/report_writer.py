"""This module writes the HTML dashboard and the CSV export of an analysis."""
import csv
import html
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from loguru import logger
from analysis.health_scorer import EMPTY_GROUP, MISSING_DESCRIPTION, NO_MANAGER
from analysis.models import AnalysisResult, GroupRecord, ScopeStatistics

HEALTHY_SCORE = 80
WARNING_SCORE = 50

CSV_COLUMNS = (
    "Name",
    "SamAccountName",
    "DistinguishedName",
    "OrganizationalUnit",
    "Category",
    "Scope",
    "Created",
    "Description",
    "Notes",
    "Email",
    "Manager",
    "ManagerTitle",
    "ManagerUPN",
    "UserMembers",
    "GroupMembers",
    "ComputerMembers",
    "TotalMembers",
    "EnabledUsers",
    "DisabledUsers",
    "AncestorGroups",
    "DirectParents",
    "HasNestedGroups",
    "HealthScore",
    "HealthIssues",
)

CSS = """
body { font-family: Segoe UI, Arial, sans-serif; margin: 24px; color: #1f2933; }
h1 { margin-bottom: 4px; }
.generated { color: #616e7c; margin-top: 0; }
.cards { display: flex; flex-wrap: wrap; gap: 12px; margin: 16px 0; }
.card { background: #f5f7fa; border-radius: 6px; padding: 12px 16px; min-width: 150px; }
.card .value { font-size: 24px; font-weight: 600; }
.card .label { color: #616e7c; font-size: 12px; text-transform: uppercase; }
table { border-collapse: collapse; width: 100%; margin-bottom: 24px; font-size: 13px; }
th, td { border: 1px solid #cbd2d9; padding: 6px 8px; text-align: left; vertical-align: top; }
th { background: #323f4b; color: #fff; }
tr:nth-child(even) { background: #f5f7fa; }
.healthy { color: #1f7a3f; font-weight: 600; }
.warning { color: #b7791f; font-weight: 600; }
.critical { color: #c53030; font-weight: 600; }
ul.issues { margin: 0; padding-left: 16px; }
"""


def health_band(score: int) -> str:
    """Map a health score onto a dashboard band."""
    if score >= HEALTHY_SCORE:
        return "healthy"
    if score >= WARNING_SCORE:
        return "warning"
    return "critical"


def summarize_results(result: AnalysisResult) -> dict[str, Any]:
    """Compute the headline figures shown at the top of the dashboard.

    Examples
    --------
    >>> summarize_results(AnalysisResult(groups=[], scope_stats={}))["group_count"]
    0
    """
    groups = result.groups
    scores = [group.health_score for group in groups]
    bands = {"healthy": 0, "warning": 0, "critical": 0}
    for score in scores:
        bands[health_band(score)] += 1
    return {
        "group_count": len(groups),
        "scope_count": len(result.scope_stats),
        "average_score": round(sum(scores) / len(scores), 1) if scores else 0.0,
        "healthy": bands["healthy"],
        "warning": bands["warning"],
        "critical": bands["critical"],
        "empty_groups": sum(1 for g in groups if EMPTY_GROUP in g.health_issues),
        "missing_description": sum(
            1 for g in groups if MISSING_DESCRIPTION in g.health_issues
        ),
        "missing_manager": sum(1 for g in groups if NO_MANAGER in g.health_issues),
        "skipped_groups": len(result.skipped_groups),
        "max_nesting_depth": max(
            (stats.max_nesting_depth for stats in result.scope_stats.values()),
            default=0,
        ),
    }


def _format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def group_row(group: GroupRecord) -> dict[str, Any]:
    """Flatten a group record into one CSV row."""
    manager = group.manager
    return {
        "Name": group.name,
        "SamAccountName": group.sam_account_name,
        "DistinguishedName": group.distinguished_name,
        "OrganizationalUnit": group.scope_id,
        "Category": group.category,
        "Scope": group.scope,
        "Created": _format_date(group.created_at),
        "Description": group.description,
        "Notes": group.notes,
        "Email": group.email,
        "Manager": group.manager_display,
        "ManagerTitle": getattr(manager, "title", ""),
        "ManagerUPN": getattr(manager, "user_principal_name", ""),
        "UserMembers": group.user_member_count,
        "GroupMembers": group.group_member_count,
        "ComputerMembers": group.computer_member_count,
        "TotalMembers": group.total_member_count,
        "EnabledUsers": group.enabled_user_count,
        "DisabledUsers": group.disabled_user_count,
        "AncestorGroups": group.ancestor_group_count,
        "DirectParents": group.direct_parent_count,
        "HasNestedGroups": group.has_nested_group_members,
        "HealthScore": group.health_score,
        "HealthIssues": "; ".join(group.health_issues),
    }


class ReportWriter:
    """Writes the analysis result to disk.

    Parameters
    ----------
    basic_config : dict[str, Any]
        A dictionary containing all the basic configuration settings.
    """

    def __init__(self, basic_config: dict[str, Any]) -> None:
        """Initialization of the class."""
        self.basic_config = basic_config
        self.report_config: dict[str, Any] = basic_config["config"]["report"]

    def _report_paths(
        self, output_dir: Path, generated_at: datetime
    ) -> tuple[Path, Path]:
        stem = f"{self.report_config['file_prefix']}_{generated_at:%Y%m%d_%H%M%S}"
        return output_dir / f"{stem}.html", output_dir / f"{stem}.csv"

    @staticmethod
    def write_csv(result: AnalysisResult, csv_path: Path) -> None:
        """Write one row per analysed group."""
        with open(csv_path, "w", newline="", encoding="utf-8") as stream:
            writer = csv.DictWriter(stream, fieldnames=list(CSV_COLUMNS))
            writer.writeheader()
            for group in result.groups:
                writer.writerow(group_row(group))

    @staticmethod
    def _cards(summary: dict[str, Any]) -> str:
        cards = [
            ("Groups analysed", summary["group_count"]),
            ("OUs", summary["scope_count"]),
            ("Average score", summary["average_score"]),
            ("Healthy", summary["healthy"]),
            ("Warning", summary["warning"]),
            ("Critical", summary["critical"]),
            ("Empty groups", summary["empty_groups"]),
            ("No description", summary["missing_description"]),
            ("No manager", summary["missing_manager"]),
            ("Max nesting depth", summary["max_nesting_depth"]),
        ]
        if summary["skipped_groups"]:
            cards.append(("Skipped groups", summary["skipped_groups"]))
        return "\n".join(
            f'<div class="card"><div class="value">{html.escape(str(value))}</div>'
            f'<div class="label">{html.escape(label)}</div></div>'
            for label, value in cards
        )

    @staticmethod
    def _scope_rows(scope_stats: dict[str, ScopeStatistics]) -> str:
        rows = []
        for scope_id in sorted(scope_stats, key=str.lower):
            stats = scope_stats[scope_id]
            rows.append(
                "<tr>"
                f"<td>{html.escape(scope_id)}</td>"
                f"<td>{stats.group_count}</td>"
                f"<td>{stats.enabled_member_count}</td>"
                f"<td>{stats.disabled_member_count}</td>"
                f"<td>{stats.total_member_count}</td>"
                f"<td>{stats.nested_group_total}</td>"
                f"<td>{stats.max_nesting_depth}</td>"
                f"<td>{stats.average_nesting:.2f}</td>"
                "</tr>"
            )
        return "\n".join(rows)

    @staticmethod
    def _group_rows(groups: list[GroupRecord]) -> str:
        rows = []
        for group in sorted(groups, key=lambda g: (g.health_score, g.name.lower())):
            issues = "".join(
                f"<li>{html.escape(issue)}</li>" for issue in group.health_issues
            )
            rows.append(
                "<tr>"
                f"<td>{html.escape(group.name)}</td>"
                f"<td>{html.escape(group.scope_id)}</td>"
                f"<td>{html.escape(group.category)} / {html.escape(group.scope)}</td>"
                f"<td>{html.escape(group.manager_display)}</td>"
                f"<td>{group.total_member_count}</td>"
                f"<td>{group.disabled_user_count}</td>"
                f"<td>{group.ancestor_group_count}</td>"
                f'<td class="{health_band(group.health_score)}">'
                f"{group.health_score}</td>"
                f'<td><ul class="issues">{issues}</ul></td>'
                "</tr>"
            )
        return "\n".join(rows)

    def render_html(self, result: AnalysisResult, generated_at: datetime) -> str:
        """Render the dashboard as a single self-contained HTML page."""
        summary = summarize_results(result)
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>AD Group Health Report</title>
<style>{CSS}</style>
</head>
<body>
<h1>AD Group Health Report</h1>
<p class="generated">Generated {generated_at:%Y-%m-%d %H:%M:%S}</p>
<div class="cards">
{self._cards(summary)}
</div>
<h2>Organizational units</h2>
<table>
<tr><th>OU</th><th>Groups</th><th>Enabled members</th><th>Disabled members</th>
<th>Total members</th><th>Nested groups</th><th>Max nesting</th>
<th>Average nesting</th></tr>
{self._scope_rows(result.scope_stats)}
</table>
<h2>Groups</h2>
<table>
<tr><th>Name</th><th>OU</th><th>Type</th><th>Manager</th><th>Members</th>
<th>Disabled users</th><th>Ancestor groups</th><th>Score</th><th>Issues</th></tr>
{self._group_rows(result.groups)}
</table>
</body>
</html>
"""

    def write_reports(
        self,
        result: AnalysisResult,
        output_dir: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> tuple[Path, Path]:
        """Write the HTML dashboard and the CSV export.

        Parameters
        ----------
        result
            A completed analysis.
        output_dir
            Overrides ``report.output_dir`` from the configuration.
        generated_at
            Timestamp used in the file names and the page header.

        Returns
        -------
        tuple[Path, Path]
            The paths of the HTML and CSV files.
        """
        if generated_at is None:
            generated_at = datetime.now()
        directory = Path(output_dir or self.report_config["output_dir"])
        html_path, csv_path = self._report_paths(directory, generated_at)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            html_path.write_text(self.render_html(result, generated_at), encoding="utf-8")
            self.write_csv(result, csv_path)
        except OSError as exc:
            logger.error("Unable to write report:")
            logger.error(exc)
            sys.exit(1)
        logger.info(f"HTML report written to {html_path}")
        logger.info(f"CSV report written to {csv_path}")
        return html_path, csv_path
