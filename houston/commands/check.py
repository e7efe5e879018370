"""
houston check - Validate the tracking workspace.
"""

import json
import sys
from itertools import groupby

from houston.lib.config import WorkspaceConfig
from houston.workspace.models import WorkspaceValidationResult
from houston.workspace.validator import validate_workspace


def format_text(result: WorkspaceValidationResult) -> str:
    """Human-readable report, issues grouped by file."""
    if result.ok:
        return f"All validations passed ({len(result.checked_files)} file(s) checked)."

    lines = ["Validation failed:"]
    for file, issues in groupby(result.errors, key=lambda issue: issue.file):
        lines.append("")
        lines.append(file)
        for issue in issues:
            lines.append(f"  - [{issue.rule}] {issue.message}")

    file_count = len({issue.file for issue in result.errors})
    lines.append("")
    lines.append(f"{len(result.errors)} issue(s) in {file_count} file(s)")
    return "\n".join(lines)


def cmd_check(args, config: WorkspaceConfig) -> int:
    """Run validation and print the result. Returns the exit code."""
    result = validate_workspace(config, target=getattr(args, "file", None))

    if getattr(args, "format", "text") == "json":
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        output = format_text(result)
        print(output, file=sys.stdout if result.ok else sys.stderr)

    return 0 if result.ok else 1
