"""
Batch Runner for Parameter Sweep Simulations

This module runs the link simulator over every combination of checksum
kind, maximum frame size and bad-state bit error rate, several seeded
runs each, and writes the results to CSV.
"""

import os
import csv
import time
import statistics
from typing import Optional, Callable, List, Dict, Tuple
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing

from tqdm import tqdm

from config import (
    CHECKSUM_KINDS, FRAME_SIZES, BAD_STATE_BERS, RUNS_PER_CONFIGURATION,
    RNG_SEED_BASE, RESULTS_CSV, DATA_SIZE
)
from simulation.simulator import LinkSimulator, SimulatorConfig
from datalink.utils.logger import LogLevel


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    checksum_kind: str
    max_frame_size: int
    bad_state_ber: float
    run_id: int
    seed: int
    data_size: int
    arq_enabled: bool = True


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    row = {
        'checksum_kind': run_config.checksum_kind,
        'max_frame_size': run_config.max_frame_size,
        'bad_state_ber': run_config.bad_state_ber,
        'arq_enabled': run_config.arq_enabled,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
    }

    try:
        config = SimulatorConfig(
            checksum_kind=run_config.checksum_kind,
            max_frame_size=run_config.max_frame_size,
            bad_state_ber=run_config.bad_state_ber,
            arq_enabled=run_config.arq_enabled,
            data_size=run_config.data_size,
            seed=run_config.seed,
            log_level=LogLevel.ERROR  # Minimal logging for batch runs
        )

        results = LinkSimulator(config).run()
        metrics = results['metrics']

        row.update({
            'efficiency': metrics['efficiency'],
            'goodput': metrics['goodput'],
            'utilization': metrics['utilization'],
            'retransmissions': metrics['retransmissions'],
            'retransmission_rate': metrics['retransmission_rate'],
            'frame_error_rate': metrics['frame_error_rate'],
            'frames_damaged': metrics['frames_damaged'],
            'resyncs': metrics['resyncs'],
            'duplicates': metrics['duplicates'],
            'wire_bytes_sent': metrics['wire_bytes_sent'],
            'total_time': results['simulation_time'],
            'data_valid': results['verification']['valid'],
            'complete': results['complete'],
            'error': None
        })

    except Exception as e:
        row.update({'efficiency': 0, 'goodput': 0, 'error': str(e)})

    return row


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (checksum, frame size, BER) combinations with multiple
    runs each.

    Attributes:
        checksum_kinds: Checksum kinds to test
        frame_sizes: Maximum frame sizes to test
        bad_state_bers: Bad-state bit error rates to test
        runs_per_config: Number of runs per configuration
        data_size: Size of data to transfer
    """

    def __init__(
        self,
        checksum_kinds: Optional[List[str]] = None,
        frame_sizes: Optional[List[int]] = None,
        bad_state_bers: Optional[List[float]] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        data_size: int = DATA_SIZE,
        arq_enabled: bool = True,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None
    ):
        """
        Initialize batch runner.

        Args:
            checksum_kinds: Checksum kinds (default from config)
            frame_sizes: Maximum frame sizes (default from config)
            bad_state_bers: Bad-state BERs (default from config)
            runs_per_config: Number of runs per configuration
            data_size: Size of data to transfer
            arq_enabled: Run with stop-and-wait ARQ
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
        """
        self.checksum_kinds = checksum_kinds or CHECKSUM_KINDS
        self.frame_sizes = frame_sizes or FRAME_SIZES
        self.bad_state_bers = bad_state_bers or BAD_STATE_BERS
        self.runs_per_config = runs_per_config
        self.data_size = data_size
        self.arq_enabled = arq_enabled
        self.output_file = output_file
        self.on_progress = on_progress

        # Results storage
        self.results: List[Dict] = []

        # Progress tracking
        self.total_runs = (len(self.checksum_kinds) *
                           len(self.frame_sizes) *
                           len(self.bad_state_bers) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        configs = []

        for kind_index, checksum_kind in enumerate(self.checksum_kinds):
            for frame_size in self.frame_sizes:
                for ber_index, ber in enumerate(self.bad_state_bers):
                    for run_id in range(self.runs_per_config):
                        # Unique seed for each run
                        seed = (RNG_SEED_BASE +
                                kind_index * 100000 +
                                frame_size * 1000 +
                                ber_index * 100 +
                                run_id)

                        configs.append(RunConfig(
                            checksum_kind=checksum_kind,
                            max_frame_size=frame_size,
                            bad_state_ber=ber,
                            run_id=run_id,
                            seed=seed,
                            data_size=self.data_size,
                            arq_enabled=self.arq_enabled
                        ))

        return configs

    def _record(self, result: Dict):
        self.results.append(result)
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, result)

    def run_sequential(self) -> List[Dict]:
        """
        Run all simulations sequentially.

        Returns:
            List of result dictionaries
        """
        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        print(f"Running {self.total_runs} simulations sequentially...")

        for config in tqdm(configs, desc="Simulations"):
            self._record(run_single_simulation(config))

        total_time = time.time() - self.start_time
        print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def run_parallel(self, max_workers: Optional[int] = None) -> List[Dict]:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            List of result dictionaries
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        print(f"Running {self.total_runs} simulations with {max_workers} workers...")

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(run_single_simulation, config): config
                for config in configs
            }

            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Simulations"):
                self._record(future.result())

        total_time = time.time() - self.start_time
        print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def save_results(self, filepath: Optional[str] = None):
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)
        """
        filepath = filepath or self.output_file

        if not self.results:
            print("No results to save!")
            return

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Union of keys, first-seen order; failed runs carry fewer fields
        fieldnames: List[str] = []
        for result in self.results:
            for key in result:
                if key not in fieldnames:
                    fieldnames.append(key)

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(self.results)

        print(f"Results saved to: {filepath}")

    def get_aggregated_results(self) -> Dict[Tuple[str, int, float], Dict]:
        """
        Get aggregated results by (checksum, frame size, BER).

        Returns:
            Dictionary with aggregated statistics
        """
        aggregated = {}

        for result in self.results:
            if result.get('error'):
                continue

            key = (result['checksum_kind'], result['max_frame_size'], result['bad_state_ber'])
            if key not in aggregated:
                aggregated[key] = {
                    'checksum_kind': key[0],
                    'max_frame_size': key[1],
                    'bad_state_ber': key[2],
                    'efficiencies': [],
                    'retransmissions': [],
                    'valid_runs': 0
                }

            aggregated[key]['efficiencies'].append(result['efficiency'])
            aggregated[key]['retransmissions'].append(result['retransmissions'])
            if result['data_valid']:
                aggregated[key]['valid_runs'] += 1

        for data in aggregated.values():
            efficiencies = data['efficiencies']
            data['efficiency_mean'] = statistics.mean(efficiencies)
            data['efficiency_std'] = (statistics.stdev(efficiencies)
                                      if len(efficiencies) > 1 else 0)
            data['retx_mean'] = statistics.mean(data['retransmissions'])

        return aggregated

    def get_optimal_configuration(self) -> Dict:
        """
        Find the most efficient configuration among runs that delivered
        the data intact.

        Returns:
            Dictionary with optimal configuration info
        """
        aggregated = self.get_aggregated_results()
        candidates = {k: v for k, v in aggregated.items() if v['valid_runs'] > 0}

        if not candidates:
            return {'error': 'No results available'}

        best_key = max(candidates, key=lambda k: candidates[k]['efficiency_mean'])
        best = candidates[best_key]

        return {
            'optimal_checksum_kind': best['checksum_kind'],
            'optimal_max_frame_size': best['max_frame_size'],
            'bad_state_ber': best['bad_state_ber'],
            'mean_efficiency': best['efficiency_mean'],
            'efficiency_std': best['efficiency_std'],
            'mean_retransmissions': best['retx_mean']
        }
