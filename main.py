# main.py
import argparse
import logging
import os
import sys

from config import apply_overrides, load_config, validate_config
from errors import ConfigurationError, TraceOpenError
from report import build_summary, print_summary, save_results, save_summary
from simulator import Simulator
from visualize import plot_hit_miss_rate, plot_outcomes, plot_set_occupancy
from workload import WorkloadGenerator, write_trace

DEFAULT_CONFIG_PATH = "config.json"

logger = logging.getLogger("csim")


def parse_arguments(argv):
    parser = argparse.ArgumentParser(
        description="Set-associative LRU cache simulator for valgrind memory traces",
        epilog="Examples:\n"
               "  python main.py -s 4 -E 1 -b 4 -t traces/yi.trace\n"
               "  python main.py -v -s 8 -E 2 -b 4 -t traces/trans.trace\n"
               "  python main.py --generate traces/synthetic.trace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", action="store_true", help="verbose: print the outcome of every access")
    parser.add_argument("-s", type=int, help="number of set index bits (2^s sets)")
    parser.add_argument("-E", type=int, help="associativity (lines per set)")
    parser.add_argument("-b", type=int, help="number of block offset bits")
    parser.add_argument("-t", metavar="TRACE", help="valgrind trace file to replay")
    parser.add_argument("-c", "--config", help=f"JSON config file (default: {DEFAULT_CONFIG_PATH} if present)")
    parser.add_argument("--plots", action="store_true", help="save charts of the run")
    parser.add_argument("--generate", metavar="PATH", help="write a synthetic trace from the workload config and exit")
    parser.add_argument("--debug", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def generate(cfg, path):
    records = WorkloadGenerator(cfg["workload"]).generate()
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    write_trace(path, records)
    print(f"Wrote {len(records)} records to {path}")


def report(simulator, cfg, trace_path):
    out_cfg = cfg["output"]
    counters = simulator.counters
    print_summary(counters)
    save_results(counters, out_cfg.get("results_file", ".csim_results"))
    if out_cfg.get("save_summary"):
        path = save_summary(build_summary(simulator, trace_path), out_cfg.get("results_dir", "results"))
        logger.info("Summary saved to %s", path)
    if out_cfg.get("plots"):
        plot_outcomes(counters, out_cfg.get("outcome_plot", "results/outcomes.png"))
        plot_hit_miss_rate(counters, out_cfg.get("hitmiss_plot", "results/hit_miss_rate.png"))
        plot_set_occupancy(
            simulator.cache.occupancy(),
            simulator.cache.associativity,
            out_cfg.get("occupancy_plot", "results/set_occupancy.png"),
        )
        logger.info("Plots saved in %s", out_cfg.get("results_dir", "results"))


def main(argv=None):
    args = parse_arguments(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(levelname)s: %(message)s',
    )

    config_path = args.config
    if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH

    try:
        cfg = apply_overrides(load_config(config_path), args)
        if args.generate:
            generate(cfg, args.generate)
            return 0
        validate_config(cfg)
        simulator = Simulator.from_config(cfg)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1

    trace_path = cfg["simulation"]["trace_file"]
    try:
        simulator.run_file(trace_path)
    except TraceOpenError as e:
        # nothing is written for an aborted run
        logger.error("%s", e)
        return 1

    report(simulator, cfg, trace_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
