import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Tuple

from config.config import SystemConfig, load_config
from harness.suite import build_default_suite, build_runner
from utils.utils import (
    PerformanceMonitor,
    create_performance_report,
    save_results,
    setup_logging,
    validate_environment,
)
from zk.circuits import default_circuits

logger = logging.getLogger(__name__)


async def run_suite(config: SystemConfig, backend: str) -> Tuple[Dict[str, Any], PerformanceMonitor]:
    monitor = PerformanceMonitor()
    runner = build_runner(config, backend=backend, monitor=monitor)
    scenarios = build_default_suite(default_circuits(config.zk_config.build_dir))

    logger.info(f"Running {len(scenarios)} scenarios")
    summary = await runner.run_all(scenarios)
    summary['performance'] = monitor.get_summary()

    for result in summary['results']:
        status = "PASS" if result.passed else "FAIL"
        logger.info(f"{result.name:50s} {status}")
    logger.info(f"Total: {summary['passed']}/{summary['total']} scenarios passed")

    return summary, monitor


def main():
    parser = argparse.ArgumentParser(
        description='ZK proof lifecycle: witness, proof, calldata, on-chain verification')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    parser.add_argument('--backend', choices=['snarkjs', 'memory'], default='snarkjs',
                        help='Prover/verifier backend')
    parser.add_argument('--rpc-url', type=str, default=None,
                        help='JSON-RPC endpoint of the development node')
    parser.add_argument('--log-level', type=str, default=None)
    parser.add_argument('--report', type=str, default=None,
                        help='Results JSON path (default: <results_dir>/lifecycle_results.json)')

    args = parser.parse_args()

    config = load_config(Path(args.config))
    if args.rpc_url:
        config.chain_config.rpc_url = args.rpc_url
    if args.log_level:
        config.log_level = args.log_level

    setup_logging(config.log_level, log_dir=config.log_dir)

    if args.backend == 'snarkjs':
        issues = validate_environment([config.zk_config.node_bin, config.zk_config.snarkjs_bin])
        for issue in issues:
            logger.error(issue)
        if issues:
            sys.exit(2)

    summary, monitor = asyncio.run(run_suite(config, args.backend))

    report_path = Path(args.report) if args.report else \
        config.results_dir / "lifecycle_results.json"
    save_results(summary, report_path)

    perf_path = report_path.parent / "performance_report.txt"
    with open(perf_path, "w") as f:
        f.write(create_performance_report(monitor))
    logger.info(f"Performance report: {perf_path}")

    sys.exit(0 if summary['all_passed'] else 1)


if __name__ == "__main__":
    main()
