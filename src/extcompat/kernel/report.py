"""Turn a finished traversal into the compatibility report."""

import json
from typing import Any, Dict, List

from extcompat._internal.canonical_json import canonical_dumps
from extcompat.contracts import CompatibilityReport
from .analysis import TraversalContext

NO_USAGES_MESSAGE = "No usages of vscode.d.ts found"
INSTALL_HINT = "make sure that package dependencies are installed, i.e. run `npm i` or `yarn`"


def build_report(context: TraversalContext) -> CompatibilityReport:
    """Materialize the accumulated sets as sorted, deduplicated sequences."""
    return CompatibilityReport(
        used_symbols=list(context.used_symbols),
        used_commands=list(context.used_commands),
        missing_symbols=list(context.missing_symbols),
        missing_commands=list(context.missing_commands),
        dynamic_command_calls=[call.describe() for call in context.dynamic_command_calls],
    )


def report_document(report: CompatibilityReport) -> Dict[str, Any]:
    """Report as the public JSON document (camelCase keys, fixed key order)."""
    return report.model_dump(by_alias=True)


def render_report(report: CompatibilityReport) -> str:
    """Human-facing rendering: the document with two-space indentation."""
    return json.dumps(report_document(report), indent=2, ensure_ascii=False)


def render_canonical(report: CompatibilityReport) -> str:
    """Byte-stable rendering for report files."""
    return canonical_dumps(report_document(report))


def no_usages_notice() -> List[str]:
    """The two lines printed instead of a report when nothing was found."""
    return [NO_USAGES_MESSAGE, INSTALL_HINT]
