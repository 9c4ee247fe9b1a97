"""extcompat CLI: report which Source-API usages the Reference API supports."""

import argparse
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path


def main():
    """Main CLI entry point for extcompat."""
    # Get version for --version argument (handle PackageNotFoundError)
    try:
        extcompat_version = get_version("extcompat")
    except PackageNotFoundError:
        extcompat_version = "dev"

    parser = argparse.ArgumentParser(
        prog="extcompat",
        description="extcompat: check which VS Code API usages of an extension the Theia plugin API supports"
    )
    parser.add_argument("--version", action="version", version=f"extcompat {extcompat_version}")
    parser.add_argument(
        "--package", "-e",
        default=str(Path.cwd()),
        help="Package path (defaults to the current directory)"
    )
    parser.add_argument(
        "--main", "-m",
        default="src/extension.ts",
        help="Package relative path of the entry module"
    )
    parser.add_argument(
        "--config", "-c",
        default="tsconfig.json",
        help="Package relative path of the tsconfig"
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Also write the report as canonical JSON to this file"
    )

    args = parser.parse_args()

    # Lazy import: only load the front end once arguments parsed
    from .api import check_package
    from .kernel.report import no_usages_notice, render_canonical, render_report

    try:
        report = check_package(args.package, main=args.main, config=args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)

    if not report.has_usages:
        message, hint = no_usages_notice()
        print(message)
        print(hint, file=sys.stderr)
        return

    print(render_report(report))
    if args.output is not None:
        output = args.output.resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(render_canonical(report) + "\n", encoding="utf-8")


if __name__ == "__main__":
    main()
