"""Command-line entry point for the tutorials.

Usage:
    bayesdocs coin-flip                      # exact update + MCMC cross-check
    bayesdocs coin-flip --flips 50 --no-mcmc
    bayesdocs regression --dataset synthetic # Bayesian vs OLS
    bayesdocs render docs/coin_flip.md       # execute a tutorial document
    bayesdocs --config custom.yaml regression
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import load_config, setup_logging

logger = logging.getLogger(__name__)


def _cmd_coin_flip(args: argparse.Namespace, cfg: dict) -> None:
    from .tutorials import coin_flip

    if args.flips is not None:
        cfg["coin_flip"]["n_flips"] = args.flips
    if args.p_heads is not None:
        cfg["coin_flip"]["p_heads"] = args.p_heads
    report = coin_flip.run(
        cfg,
        output_dir=args.output_dir,
        run_mcmc=False if args.no_mcmc else None,
    )
    print(report)


def _cmd_regression(args: argparse.Namespace, cfg: dict) -> None:
    from .tutorials import linear_regression

    report = linear_regression.run(cfg, output_dir=args.output_dir, dataset=args.dataset)
    print(report)


def _cmd_render(args: argparse.Namespace, cfg: dict) -> None:
    from .docs_runner import render_document

    out = render_document(Path(args.document), Path(args.output) if args.output else None)
    print(out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bayesdocs",
        description="Bayesian inference tutorials: coin flips and linear regression",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML file merged over the packaged defaults")
    parser.add_argument("--output-dir", default=None,
                        help="Directory for figures (default: $BAYESDOCS_OUTPUT_DIR or results)")
    parser.add_argument("--log-level", default=None, help="Override BAYESDOCS_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_coin = sub.add_parser("coin-flip", help="Beta-Bernoulli coin-flip walkthrough")
    p_coin.add_argument("--flips", type=int, default=None, help="Number of flips to simulate")
    p_coin.add_argument("--p-heads", type=float, default=None, help="True probability of heads")
    p_coin.add_argument("--no-mcmc", action="store_true", help="Skip the NUTS cross-check")
    p_coin.set_defaults(func=_cmd_coin_flip)

    p_reg = sub.add_parser("regression", help="Bayesian linear regression vs OLS")
    p_reg.add_argument("--dataset", choices=["diabetes", "synthetic"], default=None)
    p_reg.set_defaults(func=_cmd_regression)

    p_render = sub.add_parser("render", help="Execute a Markdown tutorial and inline its output")
    p_render.add_argument("document", help="Path to a trusted Markdown document (its code runs unsandboxed)")
    p_render.add_argument("-o", "--output", default=None, help="Rendered output path")
    p_render.set_defaults(func=_cmd_render)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level.upper() if args.log_level else None)

    try:
        cfg = load_config(args.config)
        args.func(args, cfg)
    except Exception:
        logger.error("%s failed", args.command, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
