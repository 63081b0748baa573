from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import typer

from cli.config import CLIConfig, load_config
from cli.render import TextAdapter, echo_heading, render_snapshot
from datastore.options_file import OptionsFile, build_default_options_file
from logging_config import configure_logging
from models.options import MAJOR_REVISION, MINOR_REVISION, Options
from models.readings import Severity, Snapshot
from sensors.base import open_backend
from sensors.factory import build_default_backend
from services.alerts import AlertTrigger, CommandRunner, TriggerMode
from services.errors import ProctempError
from services.monitor import Monitor, check_once, watch
from ui.base import run_session
from ui.chart import DEFAULT_OUTPUT, ChartFileAdapter

logger = logging.getLogger(__name__)

FATAL_EXIT_CODE = -1


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Read CPU and GPU temperature sensors, show them and alert on high temperatures.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=FATAL_EXIT_CODE)
    return state


@contextmanager
def _fatal_errors() -> Iterator[None]:
    try:
        yield
    except ProctempError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=FATAL_EXIT_CODE) from exc


def _load_options(config: CLIConfig) -> tuple[OptionsFile, Options]:
    store = build_default_options_file()
    options = store.load()
    if config.fahrenheit is not None and config.fahrenheit != options.fahrenheit:
        options = options.model_copy(update={"fahrenheit": config.fahrenheit})
    return store, options


@app.callback()
def main(
    ctx: typer.Context,
    fahrenheit: Optional[bool] = typer.Option(
        None,
        "--fahrenheit/--celsius",
        "-f/-C",
        help="Display temperatures in Fahrenheit (thresholds are always compared in Celsius).",
    ),
    cpus: bool = typer.Option(False, "--cpus", "-c", help="Only scan CPU (ISA) chips."),
    gpus: bool = typer.Option(False, "--gpus", "-g", help="Only scan GPU (PCI) chips."),
    bus: Optional[int] = typer.Option(
        None,
        "--bus",
        "-b",
        min=0,
        help="Only scan the bus with this id (overrides --cpus/--gpus).",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        help="Sensor backend: hwmon or psutil (defaults to PROCTEMP_SENSOR_BACKEND or hwmon).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to PROCTEMP_LOG_LEVEL or INFO).",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        dir_okay=False,
        help="Append log records to this file instead of stderr (defaults to PROCTEMP_LOG_FILE).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None, log_file)
    ctx.obj = CLIState(
        config=load_config(
            fahrenheit=fahrenheit,
            cpus=cpus,
            gpus=gpus,
            bus_id=bus,
            sensor_backend=backend,
        )
    )
    logger.info("proctemp version %s.%s", MAJOR_REVISION, MINOR_REVISION)


@app.command("dump")
def dump_command(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show thresholds for every channel."),
) -> None:
    """Print every temperature channel once."""
    state = _get_state(ctx)
    config = state.config
    options = Options(fahrenheit=config.fahrenheit_or(False))
    with _fatal_errors():
        backend = build_default_backend(config.sensor_backend)
        with open_backend(backend) as version:
            echo_heading(f"proctemp version {MAJOR_REVISION}.{MINOR_REVISION}")
            typer.echo(f"sensors version {version}")
            snapshot = Monitor(backend, config.scope).poll()
            TextAdapter(verbose=verbose).render(snapshot, options)


def _trigger(high_cmd: str, critical_cmd: str, mode: TriggerMode) -> AlertTrigger:
    logger.info("high_cmd=%r critical_cmd=%r mode=%s", high_cmd, critical_cmd, mode.value)
    return AlertTrigger(
        high_cmd=high_cmd,
        critical_cmd=critical_cmd,
        mode=mode,
        executor=CommandRunner(),
    )


_HIGH_CMD_OPTION = typer.Option(
    "", "--high_cmd", "--high-cmd", help="Shell command to run when a temperature is high."
)
_CRITICAL_CMD_OPTION = typer.Option(
    "", "--critical_cmd", "--critical-cmd", help="Shell command to run when a temperature is critical."
)
_DEBUG_OPTION = typer.Option(
    None,
    "--debug",
    "-d",
    min=0,
    max=2,
    help="Force the status (0 normal, 1 high, 2 critical) without reading sensors.",
)


@app.command("check")
def check_command(
    ctx: typer.Context,
    high_cmd: str = _HIGH_CMD_OPTION,
    critical_cmd: str = _CRITICAL_CMD_OPTION,
    debug: Optional[int] = _DEBUG_OPTION,
) -> None:
    """Check temperatures once; the exit code is the status (0, 1 or 2)."""
    state = _get_state(ctx)
    config = state.config
    trigger = _trigger(high_cmd, critical_cmd, TriggerMode.EVERY_POLL)
    with _fatal_errors():
        if debug is not None:
            status = check_once(Monitor(None, config.scope, debug_severity=Severity(debug)), trigger)
        else:
            backend = build_default_backend(config.sensor_backend)
            with open_backend(backend):
                logger.info("checking %s", config.scope.describe())
                status = check_once(Monitor(backend, config.scope), trigger)
    raise typer.Exit(code=int(status))


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    high_cmd: str = _HIGH_CMD_OPTION,
    critical_cmd: str = _CRITICAL_CMD_OPTION,
    debug: Optional[int] = _DEBUG_OPTION,
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        "-n",
        help="Seconds between polls (defaults to PROCTEMP_POLL_INTERVAL or 1).",
    ),
    count: Optional[int] = typer.Option(None, "--count", min=1, help="Stop after this many polls."),
    once_per_elevation: bool = typer.Option(
        False,
        "--once-per-elevation/--every-poll",
        help="Run a command only when the status rises instead of on every elevated poll.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print readings on each poll."),
) -> None:
    """Poll continuously and run the alert commands; exits with the last status."""
    state = _get_state(ctx)
    config = state.config
    mode = TriggerMode.ON_ELEVATION if once_per_elevation else TriggerMode.EVERY_POLL
    trigger = _trigger(high_cmd, critical_cmd, mode)
    fahrenheit = config.fahrenheit_or(False)
    poll_interval = interval if interval is not None and interval > 0 else config.poll_interval
    seen: List[Severity] = []

    def on_snapshot(snapshot: Snapshot) -> None:
        seen.append(snapshot.status)
        if not quiet:
            render_snapshot(snapshot, fahrenheit)

    with _fatal_errors():
        try:
            if debug is not None:
                monitor = Monitor(None, config.scope, debug_severity=Severity(debug))
                watch(monitor, trigger, poll_interval, max_polls=count, on_snapshot=on_snapshot)
            else:
                backend = build_default_backend(config.sensor_backend)
                with open_backend(backend):
                    monitor = Monitor(backend, config.scope)
                    watch(monitor, trigger, poll_interval, max_polls=count, on_snapshot=on_snapshot)
        except KeyboardInterrupt:
            logger.info("interrupted")
    raise typer.Exit(code=int(seen[-1]) if seen else 0)


@app.command("view")
def view_command(ctx: typer.Context) -> None:
    """Live terminal dashboard. Keys: T toggles the scale, S saves, Q quits."""
    from ui.dashboard import DashboardAdapter

    state = _get_state(ctx)
    config = state.config
    with _fatal_errors():
        store, options = _load_options(config)
        backend = build_default_backend(config.sensor_backend)
        with open_backend(backend) as version:
            adapter = DashboardAdapter(backend_version=version)
            try:
                run_session(
                    Monitor(backend, config.scope),
                    adapter,
                    options,
                    store=store,
                    poll_timeout=config.poll_interval,
                )
            except KeyboardInterrupt:
                logger.info("interrupted")


@app.command("chart")
def chart_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help=f"HTML file to write (defaults to the saved option or {DEFAULT_OUTPUT}).",
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh/--once",
        help=(
            "Keep rewriting the file every poll interval until interrupted, then save the "
            "output path and scale. --once writes the page and leaves the saved options alone."
        ),
    ),
) -> None:
    """Write an HTML page with one gauge chart per chip."""
    state = _get_state(ctx)
    config = state.config
    with _fatal_errors():
        store, options = _load_options(config)
        if output is not None:
            options = options.model_copy(update={"output": str(output)})
        target = Path(options.output or DEFAULT_OUTPUT)
        backend = build_default_backend(config.sensor_backend)
        with open_backend(backend):
            try:
                run_session(
                    Monitor(backend, config.scope),
                    ChartFileAdapter(target, once=not refresh),
                    options,
                    store=store if refresh else None,
                    poll_timeout=config.poll_interval,
                )
            except KeyboardInterrupt:
                logger.info("interrupted")
    typer.echo(f"Wrote {target}")


@app.command("window")
def window_command(ctx: typer.Context) -> None:
    """Open a desktop window listing live temperatures."""
    from ui.window import WindowAdapter

    state = _get_state(ctx)
    config = state.config
    with _fatal_errors():
        store, options = _load_options(config)
        backend = build_default_backend(config.sensor_backend)
        with open_backend(backend) as version:
            run_session(
                Monitor(backend, config.scope),
                WindowAdapter(backend_version=version),
                options,
                store=store,
                poll_timeout=config.poll_interval,
            )
