"""Command-line interface for TestHarness."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from testharness import __version__
from testharness.config import CliConfiguration, FileConfiguration, create_example_config
from testharness.errors import TestHarnessError, TestLoaderFatalError

console = Console()


def print_banner(out: Console) -> None:
    """Print the TestHarness banner."""
    out.print(
        Panel.fit(
            "[bold blue]TestHarness[/bold blue] - test runner with JUnit reporting",
            subtitle=f"v{__version__}",
        )
    )


def _columns(value: Optional[str]):
    if value is None or value == "max":
        return value
    try:
        return int(value)
    except ValueError:
        raise click.BadParameter("must be a number or 'max'", param_hint="--columns")


@click.group()
@click.version_option(version=__version__, prog_name="testharness")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """TestHarness - discover, filter and run tests, report as JUnit XML."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="testharness.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Initialize a new TestHarness configuration file."""
    print_banner(console)

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists:[/yellow] {output_path}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        create_example_config(output_path)
    except OSError as e:
        console.print(f"[red]Error creating configuration:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Created configuration file:[/green] {output_path}")
    console.print("\nNext steps:")
    console.print("  1. Declare your test suites in the configuration file")
    console.print("  2. Run [bold]testharness run[/bold] to execute tests")


@main.command()
@click.argument("argument", required=False)
@click.option("--configuration", "-c", type=click.Path(), help="Path to configuration file")
@click.option("--bootstrap", help="Script executed before tests are loaded")
@click.option("--testsuite", "test_suite", help="Comma-separated test suites to run")
@click.option("--exclude-testsuite", "excluded_test_suite", help="Comma-separated test suites to skip")
@click.option("--test-suffix", "test_suffixes", multiple=True, help="Test file suffix (repeatable)")
@click.option("--group", "groups", multiple=True, help="Only run tests from this group (repeatable)")
@click.option("--exclude-group", "excluded_groups", multiple=True, help="Skip tests from this group (repeatable)")
@click.option("--filter", "name_filter", help="Only run tests whose name matches this pattern")
@click.option("--cache-result/--do-not-cache-result", default=None, help="Cache test results")
@click.option("--cache-directory", help="Cache directory")
@click.option("--coverage-cache", "coverage_cache_directory", help="Coverage cache directory")
@click.option("--cache-result-file", help="Test result cache file")
@click.option("--coverage-filter", multiple=True, help="Include directory in code coverage (repeatable)")
@click.option("--path-coverage", is_flag=True, default=None, help="Collect path coverage")
@click.option("--disable-coverage-ignore", "disable_code_coverage_ignore", is_flag=True, default=None, help="Ignore coverage ignore markers")
@click.option("--fail-on-empty-test-suite", is_flag=True, default=None)
@click.option("--fail-on-incomplete", is_flag=True, default=None)
@click.option("--fail-on-risky", is_flag=True, default=None)
@click.option("--fail-on-skipped", is_flag=True, default=None)
@click.option("--fail-on-warning", is_flag=True, default=None)
@click.option("--stderr", is_flag=True, default=None, help="Write output to stderr")
@click.option("--columns", help="Number of console columns or 'max'")
@click.option("--no-extensions", is_flag=True, default=None, help="Do not load extensions")
@click.option("--log-junit", type=click.Path(), help="Write a JUnit XML report to this file")
@click.option("--report-risky", "report_risky_tests", is_flag=True, default=None, help="Report risky tests as errors")
def run(
    argument: Optional[str],
    configuration: Optional[str],
    test_suffixes: tuple[str, ...],
    groups: tuple[str, ...],
    excluded_groups: tuple[str, ...],
    name_filter: Optional[str],
    coverage_filter: tuple[str, ...],
    columns: Optional[str],
    **options,
) -> None:
    """Run tests from ARGUMENT (file or directory) or from the configured suites."""
    from testharness.configuration import resolve
    from testharness.core.runner import TestRunner
    from testharness.events import EventDispatcher, TestSuiteFinished, TestSuiteStarted
    from testharness.extensions import load_extensions
    from testharness.filter.factory import FilterFactory
    from testharness.report.junit import JunitXmlLogger

    cli_config = CliConfiguration(
        argument=argument,
        configuration=configuration,
        test_suffixes=list(test_suffixes) or None,
        groups=list(groups) or None,
        excluded_groups=list(excluded_groups) or None,
        filter=name_filter,
        coverage_filter=list(coverage_filter) or None,
        columns=_columns(columns),
        **options,
    )

    try:
        if configuration:
            file_config = FileConfiguration.from_file(configuration)
        else:
            file_config = FileConfiguration.find_and_load()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    dispatcher = EventDispatcher()

    try:
        config = resolve(cli_config, file_config, dispatcher)
    except TestLoaderFatalError as e:
        print(e.diagnostic)
        sys.exit(1)
    except TestHarnessError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    width = None if config.columns == "max" else config.columns
    out = Console(stderr=config.output_to_standard_error_stream, width=width)
    print_banner(out)

    if config.too_few_columns_requested:
        out.print("[yellow]Less than 16 columns requested, number of columns set to 16[/yellow]")

    if config.load_extensions and config.has_extensions_directory():
        for path in load_extensions(config.extensions_directory):
            out.print(f"[dim]Loaded extension {path}[/dim]")

    if not config.has_test_suite():
        out.print("[yellow]No tests found[/yellow]")
        sys.exit(1 if config.fail_on_empty_test_suite else 0)

    junit = None
    if config.has_junit_log_file():
        junit = JunitXmlLogger(dispatcher, report_risky_tests=config.report_risky_tests)

    progress = _Progress(out)
    dispatcher.register_subscriber(TestSuiteStarted, progress.suite_started)
    dispatcher.register_subscriber(TestSuiteFinished, progress.suite_finished)

    runner = TestRunner(dispatcher, FilterFactory.from_configuration(config))
    summary = runner.run(config.test_suite)

    if junit is not None:
        junit.flush(config.junit_log_file)
        out.print(f"[green]JUnit report written:[/green] {config.junit_log_file}")

    _display_summary(out, summary.to_dict())
    sys.exit(summary.exit_code(config))


class _Progress:
    """Announces the number of tests once the outermost suite starts."""

    def __init__(self, out: Console):
        self.out = out
        self.depth = 0

    def suite_started(self, event) -> None:
        if self.depth == 0:
            noun = "test" if event.count == 1 else "tests"
            self.out.print(f"Running {event.count} {noun}")
        self.depth += 1

    def suite_finished(self, event) -> None:
        self.depth -= 1


def _display_summary(out: Console, results: dict) -> None:
    """Display a summary of test results."""
    table = Table(title="Test Results Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Tests", str(results["tests"]))
    table.add_row("Passed", f"[green]{results['passed']}[/green]")
    table.add_row("Failures", f"[red]{results['failures']}[/red]")
    table.add_row("Errors", f"[red]{results['errors']}[/red]")
    table.add_row("Warnings", f"[yellow]{results['warnings']}[/yellow]")
    table.add_row("Risky", f"[yellow]{results['risky']}[/yellow]")
    table.add_row("Skipped", f"[yellow]{results['skipped']}[/yellow]")
    table.add_row("Incomplete", f"[yellow]{results['incomplete']}[/yellow]")

    out.print(table)

    if results["failures"] or results["errors"]:
        out.print("\n[red]Some tests failed![/red]")
    else:
        out.print("\n[green]All tests passed![/green]")


if __name__ == "__main__":
    main()
