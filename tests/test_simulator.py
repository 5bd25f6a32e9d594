"""
Integration tests for the link simulator, batch runner and heatmap.
"""

import pytest
import sys
import os
import csv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from simulation.simulator import (
    LinkSimulator, SimulatorConfig, generate_test_data, verify_data
)
from simulation.runner import BatchRunner, RunConfig, run_single_simulation
from visualization.heatmap import EfficiencyHeatmap


def clean_config(**overrides) -> SimulatorConfig:
    """Configuration for an error-free, loss-free channel."""
    params = dict(
        good_state_ber=0.0,
        bad_state_ber=0.0,
        loss_probability=0.0,
        data_size=256,
        max_time=60.0
    )
    params.update(overrides)
    return SimulatorConfig(**params)


class TestHelpers:
    """Tests for data generation and verification."""

    def test_generate_reproducible(self):
        """Test the same seed yields the same data."""
        assert generate_test_data(128, 5) == generate_test_data(128, 5)
        assert generate_test_data(128, 5) != generate_test_data(128, 6)
        assert len(generate_test_data(100, 1)) == 100

    def test_verify_match(self):
        """Test identical data verifies."""
        result = verify_data(b'abc', b'abc')

        assert result['valid']
        assert result['first_mismatch'] is None

    def test_verify_mismatch(self):
        """Test first differing index is reported."""
        assert verify_data(b'abcd', b'abXd')['first_mismatch'] == 2

    def test_verify_truncated(self):
        """Test missing tail is a mismatch at the shorter length."""
        result = verify_data(b'abcd', b'ab')

        assert not result['valid']
        assert result['first_mismatch'] == 2


class TestLinkSimulator:
    """Tests for end-to-end transfers."""

    def test_clean_channel_with_arq(self):
        """Test every byte arrives once without retransmission."""
        results = LinkSimulator(clean_config()).run()

        assert results['verification']['valid']
        assert results['complete']
        assert results['metrics']['retransmissions'] == 0
        assert results['metrics']['data_frames_delivered'] == 4
        assert results['metrics']['ack_frames_sent'] == 4
        assert 0.0 < results['metrics']['efficiency'] < 1.0

    def test_clean_channel_without_arq(self):
        """Test sub-framed parity transfer on a clean channel."""
        config = clean_config(checksum_kind='parity', arq_enabled=False)

        results = LinkSimulator(config).run()

        assert results['verification']['valid']
        assert results['metrics']['ack_frames_sent'] == 0

    def test_lossy_channel_recovers(self):
        """Test ARQ delivers everything despite half the frames being lost."""
        config = clean_config(loss_probability=0.5, data_size=512, seed=3)

        results = LinkSimulator(config).run()

        assert results['verification']['valid']
        assert results['complete']
        assert results['metrics']['retransmissions'] > 0

    def test_explicit_data(self):
        """Test caller-supplied data containing every tag value."""
        data = b'{}\\@' * 40

        results = LinkSimulator(clean_config()).run(data)

        assert results['verification']['valid']
        assert results['verification']['received_bytes'] == len(data)


class TestBatchRunner:
    """Tests for parameter sweeps."""

    def make_runner(self, tmp_path) -> BatchRunner:
        return BatchRunner(
            checksum_kinds=['parity', 'crc'],
            frame_sizes=[8, 16],
            bad_state_bers=[1e-3],
            runs_per_config=1,
            data_size=256,
            output_file=str(tmp_path / 'out' / 'results.csv')
        )

    def test_single_run_row(self):
        """Test a single run produces a complete CSV row."""
        row = run_single_simulation(RunConfig(
            checksum_kind='crc', max_frame_size=8, bad_state_ber=1e-3,
            run_id=0, seed=11, data_size=128
        ))

        assert row['error'] is None
        assert row['data_valid']
        assert row['efficiency'] > 0

    def test_invalid_run_reports_error(self):
        """Test a failing configuration is recorded, not raised."""
        row = run_single_simulation(RunConfig(
            checksum_kind='nonsense', max_frame_size=8, bad_state_ber=1e-3,
            run_id=0, seed=1, data_size=16
        ))

        assert row['error']

    def test_sweep_and_save(self, tmp_path):
        """Test sweep results are saved and aggregated."""
        progress = []
        runner = self.make_runner(tmp_path)
        runner.on_progress = lambda done, total, _: progress.append((done, total))

        results = runner.run_sequential()
        runner.save_results()

        assert len(results) == 4
        assert progress[-1] == (4, 4)

        with open(runner.output_file, newline='') as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 4

        optimal = runner.get_optimal_configuration()
        assert optimal['optimal_checksum_kind'] in ('parity', 'crc')
        assert optimal['optimal_max_frame_size'] in (8, 16)

    def test_optimal_without_results(self):
        """Test an empty runner reports an error."""
        assert 'error' in BatchRunner(runs_per_config=1).get_optimal_configuration()


class TestEfficiencyHeatmap:
    """Tests for heatmap generation."""

    RESULTS = [
        {'checksum_kind': 'crc', 'max_frame_size': 8, 'bad_state_ber': 1e-3, 'efficiency': 0.4},
        {'checksum_kind': 'crc', 'max_frame_size': 8, 'bad_state_ber': 1e-3, 'efficiency': 0.6},
        {'checksum_kind': 'crc', 'max_frame_size': 16, 'bad_state_ber': 1e-3, 'efficiency': 0.7},
        {'checksum_kind': 'parity', 'max_frame_size': 8, 'bad_state_ber': 1e-3, 'efficiency': 0.3},
        {'checksum_kind': 'parity', 'max_frame_size': 16, 'bad_state_ber': 1e-3, 'error': 'boom'},
    ]

    def test_matrix(self):
        """Test cells hold mean efficiency and errors are excluded."""
        heatmap = EfficiencyHeatmap(results=self.RESULTS)

        matrix, best = heatmap.create_efficiency_matrix('crc')

        assert matrix.shape == (2, 1)
        assert matrix[0, 0] == pytest.approx(0.5)
        assert best == (1, 0)

        parity, _ = heatmap.create_efficiency_matrix('parity')
        assert parity[1, 0] == 0.0

    def test_plot(self, tmp_path):
        """Test the figure is written."""
        output = str(tmp_path / 'heatmap.png')

        path = EfficiencyHeatmap(results=self.RESULTS).plot(output_file=output)

        assert path == output
        assert os.path.exists(output)

    def test_plot_without_results(self):
        """Test plotting nothing raises ValueError."""
        with pytest.raises(ValueError):
            EfficiencyHeatmap().plot()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
