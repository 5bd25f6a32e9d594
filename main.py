#!/usr/bin/env python3
"""
Byte-Stuffed Data-Link Simulator - Main Entry Point

This is the main CLI interface for the data-link layer simulator.
It provides options for:
- Single simulation runs
- Parameter sweep over checksum kind, frame size and channel BER
- Visualization generation
- Framing a piece of text to inspect the wire format

Usage:
    python main.py --single --checksum crc --frame-size 8
    python main.py --sweep --runs 3
    python main.py --visualize --csv results.csv
    python main.py --encode "a{b}c"
"""

import argparse
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    CHECKSUM_KINDS, FRAME_SIZES, BAD_STATE_BERS, RUNS_PER_CONFIGURATION,
    DEFAULT_CHECKSUM, MAX_FRAME_SIZE, BAD_STATE_BER, DATA_SIZE,
    MESSAGE_SIZE, RESULTS_CSV, PLOTS_DIR
)


def run_single_simulation(args):
    """Run a single simulation with specified parameters."""
    from simulation.simulator import LinkSimulator, SimulatorConfig
    from datalink.utils.logger import LogLevel

    config = SimulatorConfig(
        checksum_kind=args.checksum,
        max_frame_size=args.frame_size,
        arq_enabled=not args.no_arq,
        bad_state_ber=args.ber,
        data_size=args.data_size,
        message_size=args.message_size,
        seed=args.seed,
        log_level=LogLevel.DEBUG if args.verbose else LogLevel.ERROR
    )

    print("=" * 60)
    print("DATA-LINK SIMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Checksum: {config.checksum_kind}")
    print(f"  Max frame size: {config.max_frame_size} bytes")
    print(f"  Stop-and-wait ARQ: {config.arq_enabled}")
    print(f"  Bad-state BER: {config.bad_state_ber:.2e}")
    print(f"  Data size: {config.data_size} bytes in {config.message_size}-byte messages")
    print(f"  Timeout: {config.arq_timeout * 1000:.0f} ms")
    print(f"  Seed: {config.seed}")

    print("\nRunning simulation...")

    sim = LinkSimulator(config)
    start_time = time.time()
    results = sim.run()
    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)

    verification = results['verification']
    print(f"\nTransfer Status:")
    print(f"  Complete: {results['complete']}")
    print(f"  Data Valid: {verification['valid']}")
    if not verification['valid']:
        print(f"  First mismatch at byte: {verification['first_mismatch']}")
    print(f"  Simulation Time: {results['simulation_time']:.4f} s")
    print(f"  Real Time: {elapsed:.2f} s")

    metrics = results['metrics']
    print(f"\nPerformance Metrics:")
    print(f"  Efficiency: {metrics['efficiency'] * 100:.2f}%")
    print(f"  Goodput: {metrics['goodput']:.2f} B/s")
    print(f"  Utilization: {metrics['utilization'] * 100:.2f}%")

    print(f"\nFrame Statistics:")
    print(f"  Frames Sent: {metrics['data_frames_sent']}")
    print(f"  Frames Delivered: {metrics['data_frames_delivered']}")
    print(f"  Frames Damaged: {metrics['frames_damaged']}")
    print(f"  Resyncs: {metrics['resyncs']}")
    print(f"  Retransmissions: {metrics['retransmissions']}")
    print(f"  Duplicates: {metrics['duplicates']}")
    print(f"  Frame Error Rate: {metrics['frame_error_rate']:.4f}")

    return results


def run_parameter_sweep(args):
    """Run full parameter sweep."""
    from simulation.runner import BatchRunner

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)

    # Determine parameter space
    if args.quick:
        frame_sizes = [4, 16, 64]
        bad_state_bers = [1e-3, 1e-2]
        runs = 1
        data_size = 512
    else:
        frame_sizes = FRAME_SIZES
        bad_state_bers = BAD_STATE_BERS
        runs = args.runs
        data_size = args.data_size

    runner = BatchRunner(
        checksum_kinds=CHECKSUM_KINDS,
        frame_sizes=frame_sizes,
        bad_state_bers=bad_state_bers,
        runs_per_config=runs,
        data_size=data_size,
        arq_enabled=not args.no_arq,
        output_file=args.output or RESULTS_CSV
    )

    print(f"\nConfiguration:")
    print(f"  Checksums: {CHECKSUM_KINDS}")
    print(f"  Frame sizes: {frame_sizes}")
    print(f"  Bad-state BERs: {bad_state_bers}")
    print(f"  Runs per config: {runs}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Data size per run: {data_size} bytes")
    print(f"  Output: {runner.output_file}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    runner.save_results()

    optimal = runner.get_optimal_configuration()

    print("\n" + "=" * 60)
    print("MOST EFFICIENT CONFIGURATION")
    print("=" * 60)
    if 'error' in optimal:
        print(f"  {optimal['error']}")
    else:
        print(f"  Checksum: {optimal['optimal_checksum_kind']}")
        print(f"  Max Frame Size: {optimal['optimal_max_frame_size']} bytes")
        print(f"  Bad-State BER: {optimal['bad_state_ber']:.2e}")
        print(f"  Mean Efficiency: {optimal['mean_efficiency'] * 100:.2f}%")

    return results


def generate_visualizations(args):
    """Generate visualization plots."""
    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python main.py --sweep")
        return

    from visualization.heatmap import EfficiencyHeatmap

    os.makedirs(PLOTS_DIR, exist_ok=True)

    print("\nGenerating heatmap...")
    heatmap = EfficiencyHeatmap(csv_file=csv_file)
    print(f"Loaded {len(heatmap.results)} results from {csv_file}")
    heatmap_file = heatmap.plot(
        output_file=os.path.join(PLOTS_DIR, 'efficiency_heatmap.png')
    )

    print(f"\n  Heatmap: {heatmap_file}")


def show_config(args):
    """Display current configuration."""
    print("=" * 60)
    print("LINK CONFIGURATION")
    print("=" * 60)

    import config as cfg

    print(f"\nFraming:")
    print(f"  Tags: start={chr(cfg.START_TAG)!r} stop={chr(cfg.STOP_TAG)!r} "
          f"escape={chr(cfg.ESCAPE_TAG)!r} ack={chr(cfg.ACK_TAG)!r}")
    print(f"  Max frame size: {cfg.MAX_FRAME_SIZE} bytes")

    print(f"\nError Detection:")
    print(f"  Default checksum: {cfg.DEFAULT_CHECKSUM}")
    print(f"  CRC generator: {cfg.CRC_GENERATOR:#x} ({cfg.CRC_GENERATOR_WIDTH} bits)")
    print(f"  CRC check bytes: {cfg.calculate_check_bytes(cfg.CHECKSUM_CRC)}")

    print(f"\nStop-and-Wait:")
    print(f"  Timeout: {cfg.ARQ_TIMEOUT * 1000:.0f} ms")

    print(f"\nPhysical Layer Parameters:")
    print(f"  Bit Rate: {cfg.BIT_RATE} bps")
    print(f"  Propagation Delay: {cfg.PROPAGATION_DELAY * 1000:.0f} ms")
    print(f"  Frame Loss Probability: {cfg.FRAME_LOSS_PROBABILITY}")

    print(f"\nGilbert-Elliot Channel:")
    print(f"  Good State BER: {cfg.GOOD_STATE_BER:.2e}")
    print(f"  Bad State BER: {cfg.BAD_STATE_BER:.2e}")
    print(f"  P(Good→Bad): {cfg.P_GOOD_TO_BAD}")
    print(f"  P(Bad→Good): {cfg.P_BAD_TO_GOOD}")
    print(f"  Average BER: {cfg.calculate_average_ber():.2e}")

    print(f"\nParameter Sweep:")
    print(f"  Checksums: {cfg.CHECKSUM_KINDS}")
    print(f"  Frame Sizes: {cfg.FRAME_SIZES}")
    print(f"  Bad-State BERs: {cfg.BAD_STATE_BERS}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")

    print(f"\nWorst-case wire size of a {cfg.MESSAGE_SIZE}-byte message:")
    for kind in cfg.CHECKSUM_KINDS:
        size = cfg.calculate_max_wire_size(cfg.MESSAGE_SIZE, checksum_kind=kind)
        print(f"  {kind}: {size} bytes ({cfg.calculate_transmission_time(size) * 1000:.2f} ms)")


def encode_text(args):
    """Frame a piece of text and show the wire bytes."""
    from datalink.framing.tags import LinkConfig, ChecksumKind
    from datalink.framing.framer import Framer
    from datalink.framing.deframer import Deframer
    from datalink.utils.buffer import ReceiveBuffer
    from datalink.utils.logger import LinkLogger, LogLevel

    config = LinkConfig(
        max_frame_size=args.frame_size,
        checksum_kind=ChecksumKind(args.checksum),
        arq_enabled=not args.no_arq
    )
    framer = Framer(config)
    payload = args.encode.encode('utf-8')
    wire = framer.frame(payload, 0 if config.arq_enabled else None)

    print(f"Payload ({len(payload)}B): {payload!r}")
    print(f"Wire    ({len(wire)}B): {wire!r}")
    print(f"Hex: {wire.hex(' ')}")

    buffer = ReceiveBuffer()
    buffer.extend(wire)
    deframer = Deframer(config, logger=LinkLogger(level=LogLevel.ERROR))
    decoded = bytearray()
    while True:
        frame = deframer.extract(buffer)
        if frame is None:
            break
        decoded += frame.payload
    print(f"Decoded: {bytes(decoded)!r}")


def main():
    parser = argparse.ArgumentParser(
        description="Byte-Stuffed Data-Link Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single simulation:
    python main.py --single --checksum parity --frame-size 16 --ber 1e-2

  Quick parameter sweep (for testing):
    python main.py --sweep --quick

  Parallel parameter sweep:
    python main.py --sweep --parallel --workers 4

  Generate visualizations:
    python main.py --visualize

  Inspect the wire format:
    python main.py --encode "a{b}c" --no-arq
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single simulation')
    mode.add_argument('--sweep', action='store_true',
                      help='Run parameter sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')
    mode.add_argument('--encode', type=str, metavar='TEXT',
                      help='Frame TEXT and print the wire bytes')

    # Link options
    parser.add_argument('--checksum', '-c', choices=CHECKSUM_KINDS,
                        default=DEFAULT_CHECKSUM,
                        help=f'Checksum kind (default: {DEFAULT_CHECKSUM})')
    parser.add_argument('--frame-size', '-f', type=int, default=MAX_FRAME_SIZE,
                        help=f'Max frame size in bytes (default: {MAX_FRAME_SIZE})')
    parser.add_argument('--no-arq', action='store_true',
                        help='Disable stop-and-wait ARQ')

    # Single simulation options
    parser.add_argument('--ber', type=float, default=BAD_STATE_BER,
                        help=f'Bad-state bit error rate (default: {BAD_STATE_BER})')
    parser.add_argument('--seed', '-s', type=int, default=42,
                        help='Random seed (default: 42)')
    parser.add_argument('--message-size', type=int, default=MESSAGE_SIZE,
                        help=f'Bytes per send (default: {MESSAGE_SIZE})')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Data options
    parser.add_argument('--data-size', type=int, default=DATA_SIZE,
                        help=f'Data size in bytes (default: {DATA_SIZE})')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args()

    # Execute selected mode
    if args.single:
        run_single_simulation(args)
    elif args.sweep:
        run_parameter_sweep(args)
    elif args.visualize:
        generate_visualizations(args)
    elif args.config:
        show_config(args)
    elif args.encode is not None:
        encode_text(args)


if __name__ == "__main__":
    main()
