from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

- Accepts a .java file or a directory path
- Finds .java files (using traversal.find_java_files for directories)
- Builds a FileContext for each file
- Runs all enabled rules from config.py against the shared analysis session
- Prints findings with the Rich report, or as plain
  "file:line:col: SEVERITY [rule] message" lines with --plain
"""

import logging
from pathlib import Path
from typing import List, Sequence

import typer

from queryleak.config import Config, get_default_config, get_enabled_rules
from queryleak.context import create_context
from queryleak.findings.models import Finding
from queryleak.parser import create_parser
from queryleak.reporting.console import print_findings
from queryleak.traversal import find_java_files, is_java_file

logger = logging.getLogger(__name__)

app = typer.Typer(help="QueryLeak - finds unclosed jOOQ result streams and cursors in Java sources.")


def _collect_java_files(target: Path) -> List[Path]:
    """
    Resolve a target path into a list of .java files to analyze.

    - If target is a .java file, return [target]
    - If target is a directory, use traversal.find_java_files()
    - Otherwise, exit with an error.
    """
    if target.is_file():
        if not is_java_file(target):
            raise typer.BadParameter(f"Target file must have .java extension, got: {target}")
        return [target]

    if target.is_dir():
        files = find_java_files(target)
        if not files:
            logger.warning("No .java files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


def _print_plain(findings: Sequence[Finding]) -> None:
    """Print findings in a simple, grep-like format."""
    if not findings:
        typer.echo("No findings.")
        return

    for f in findings:
        loc = f.location
        typer.echo(
            f"{loc.path}:{loc.line}:{loc.column}: {f.severity.upper()} "
            f"[{f.rule_id}] {f.message}"
        )


def run_analysis(files: Sequence[Path], config: Config) -> List[Finding]:
    """Run every enabled rule over every file; a rule failing on one file does not stop the run."""
    all_findings: List[Finding] = []
    rules = list(get_enabled_rules(config))
    parser = create_parser()

    for path in files:
        ctx = create_context(path, parser=parser)
        if ctx is None:
            # File could not be read; error already logged in create_context
            continue
        for rule in rules:
            try:
                rule_findings = rule.run(ctx, config)
            except Exception as exc:
                logger.exception("Rule %s failed on %s: %s", rule.id, path, exc)
                continue
            all_findings.extend(rule_findings)

    return all_findings


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Java file or directory to analyze.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show remediation hints."),
    plain: bool = typer.Option(False, "--plain", help="Print one finding per line instead of the Rich report."),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """
    Analyze a single Java file or all .java files under a directory.

    Uses the rules registered in config.get_default_config().
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    config: Config = get_default_config()
    if not get_enabled_rules(config):
        typer.echo("No rules are enabled in the current configuration.")
        raise typer.Exit(code=1)

    files = _collect_java_files(target)
    findings = run_analysis(files, config)

    if plain:
        _print_plain(findings)
    else:
        print_findings(findings, analyzed_files=files, verbose=verbose)


@app.command()
def rules() -> None:
    """List the enabled rules."""
    for rule in get_enabled_rules(get_default_config()):
        typer.echo(f"{rule.id}: {rule.name}")


def main() -> None:
    """Entry point for `python -m queryleak.main` and the `queryleak` script."""
    app()


if __name__ == "__main__":
    main()
