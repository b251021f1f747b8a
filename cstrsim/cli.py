import argparse
import logging
from typing import List, Optional

from pydantic import ValidationError

from .analytics import compare_with_reference, parameter_sweep, simulate_steps, steps_for
from .config import DEFAULT_INITIAL_STATE, SimulationSettings, parameters_with, symbol_table

logger = logging.getLogger(__name__)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--set",
        dest="overrides",
        nargs="+",
        default=[],
        metavar="SYM=VALUE",
        help="Override parameters by symbol or field name, e.g. F0=1.5 n=1",
    )


def _n_steps(args: argparse.Namespace) -> int:
    if args.steps is not None:
        return args.steps
    return steps_for(args.t_end)


def run_cli(argv: Optional[List[str]] = None) -> None:
    try:
        settings = SimulationSettings()
    except ValidationError as e:
        raise SystemExit(f"Invalid CSTRSIM_* environment settings:\n{e}")
    parser = argparse.ArgumentParser(description="CSTRSim - jacketed CSTR dynamics (fixed-step RK4)")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default from CSTRSIM_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # Trajectory
    p_run = sub.add_parser("run", help="Simulate from the default initial state and write a CSV trajectory")
    horizon = p_run.add_mutually_exclusive_group()
    horizon.add_argument("--steps", type=int, help="Number of 0.1 s steps")
    horizon.add_argument("--t-end", type=float, default=60.0, help="Simulated time (s)")
    p_run.add_argument("--csv", type=str, default="cstr.csv")
    _add_common(p_run)

    # Sweep
    p_sweep = sub.add_parser("sweep", help="Final state after a fixed horizon for several values of one parameter")
    p_sweep.add_argument("--param", required=True, help="Parameter symbol or field name, e.g. U")
    p_sweep.add_argument("--values", nargs="+", type=float, required=True)
    horizon = p_sweep.add_mutually_exclusive_group()
    horizon.add_argument("--steps", type=int)
    horizon.add_argument("--t-end", type=float, default=60.0)
    p_sweep.add_argument("--csv", type=str, default="cstr_sweep.csv")
    _add_common(p_sweep)

    # Reference comparison
    p_cmp = sub.add_parser("compare", help="Compare RK4 against SciPy's adaptive solver")
    p_cmp.add_argument("--t-end", type=float, default=10.0)
    p_cmp.add_argument("--method", type=str, default="LSODA")
    _add_common(p_cmp)

    sub.add_parser("params", help="List parameter symbols and defaults")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.cmd == "params":
        for row in symbol_table():
            print(f"{row['symbol']:>7}  {row['field']:<26} {row['default']}")
        return

    try:
        params = parameters_with(args.overrides)
    except ValueError as e:
        raise SystemExit(str(e))

    if args.cmd == "run":
        n = _n_steps(args)
        if n < 0:
            raise SystemExit("--steps must be non-negative")
        df = simulate_steps(DEFAULT_INITIAL_STATE, params, n)
        df.to_csv(args.csv, index=False)
        logger.info("Wrote %d rows to %s", len(df), args.csv)
        return

    if args.cmd == "sweep":
        try:
            df = parameter_sweep(DEFAULT_INITIAL_STATE, params, args.param, args.values, _n_steps(args))
        except ValueError as e:
            raise SystemExit(str(e))
        df.to_csv(args.csv, index=False)
        logger.info("Wrote %d rows to %s", len(df), args.csv)
        return

    if args.cmd == "compare":
        try:
            deviation = compare_with_reference(DEFAULT_INITIAL_STATE, params, args.t_end, method=args.method)
        except ValueError as e:
            raise SystemExit(str(e))
        for name, value in deviation.items():
            print(f"{name:<20} max |RK4 - {args.method}| = {value:.3e}")
        return


if __name__ == "__main__":
    run_cli()
