#!/usr/bin/env python3
"""
Tune the reference MDI schedule
Scores the example day, improves its insulin amounts with each search
strategy and exports the glucose trace of the best schedule to CSV.
"""

import argparse
import logging

from MDISimulator import EXAMPLE_SCHEDULE, DosageTuner, ImprovementEvent
from MDISimulator.utils.trace_io import write_trace_csv


def print_improvement(event: ImprovementEvent):
    amounts = ", ".join(f"{a:.0f}" for a in event.schedule.dosage_vector().amounts)
    print(f"  [{event.iteration:>5}] score {event.score:.4f}  amounts [{amounts}]")


def main():
    parser = argparse.ArgumentParser(description="Tune the insulin amounts of the example MDI day.")
    parser.add_argument("--config", default=None, help="YAML or JSON configuration file")
    parser.add_argument("--strategy", choices=["local", "evolutionary", "grid"], default="local")
    parser.add_argument("--output", default="best_schedule_trace.csv", help="CSV file for the best trace")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    tuner = DosageTuner.from_config_file(args.config)
    start = tuner.breakdown(EXAMPLE_SCHEDULE)
    print("EXAMPLE SCHEDULE")
    print("=" * 50)
    print(f"Score: {start.score:.4f}")
    print(f"  in range {start.tir_fraction:.1%}, hypo {start.hypo_fraction:.1%}, hyper {start.hyper_fraction:.1%}, "
          f"amplitude {start.amplitude:.2f} mmol/l, dose load {start.dose_load:.2f}")

    print(f"\nRunning {args.strategy} search...")
    if args.strategy == "grid":
        result = tuner.grid_search(EXAMPLE_SCHEDULE, on_improved=print_improvement)
    elif args.strategy == "evolutionary":
        result = tuner.evolutionary_search(EXAMPLE_SCHEDULE, on_improved=print_improvement)
    else:
        result = tuner.local_search(EXAMPLE_SCHEDULE, on_improved=print_improvement)

    print(f"\nBest score: {result.score:.4f} "
          f"({result.evaluations} simulations, {result.cache_hits} cache hits)")
    print(f"  basal {result.schedule.basal.amount:.0f} U at {result.schedule.basal.minute_of_day // 60:02d}:00")
    for bolus in result.schedule.boluses:
        hours, minutes = divmod(bolus.minute_of_day, 60)
        print(f"  bolus {bolus.amount:.0f} U at {hours:02d}:{minutes:02d}")

    trace = tuner.simulate(result.schedule)
    path = write_trace_csv(trace, args.output)
    print(f"\nTrace written to {path}")


if __name__ == "__main__":
    main()
