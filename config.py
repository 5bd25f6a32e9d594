"""
Configuration file for the byte-stuffed data-link layer.
Contains all fixed baseline parameters for framing, error detection,
stop-and-wait ARQ and the simulated channel.
"""

import os

# =============================================================================
# FRAMING TAGS (byte values)
# =============================================================================

START_TAG = ord('{')
STOP_TAG = ord('}')
ESCAPE_TAG = ord('\\')
ACK_TAG = ord('@')

# Maximum number of payload bytes per sub-frame (parity / CRC variants)
MAX_FRAME_SIZE = 8

# =============================================================================
# ERROR DETECTION
# =============================================================================

# Checksum kinds
CHECKSUM_PARITY = "parity"
CHECKSUM_CRC = "crc"

DEFAULT_CHECKSUM = CHECKSUM_CRC

# CRC-8 generator (x^8 + x^7 + x^6 + x^4 + x^2 + 1) and its size in bits
CRC_GENERATOR = 0x1D5
CRC_GENERATOR_WIDTH = 9

BITS_PER_BYTE = 8

# =============================================================================
# STOP-AND-WAIT ARQ
# =============================================================================

# Retransmission timeout (seconds)
ARQ_TIMEOUT = 0.100  # 100 ms

# Number of distinct frame numbers (1-bit alternating)
FRAME_NUMBER_MODULUS = 2

# =============================================================================
# PHYSICAL LAYER PARAMETERS
# =============================================================================

# Bit Rate (bits per second)
BIT_RATE = 115_200  # serial-line rate

# Propagation delay (seconds), same in both directions
PROPAGATION_DELAY = 0.010  # 10 ms

# Probability that an entire transmission is lost
FRAME_LOSS_PROBABILITY = 0.01

# =============================================================================
# GILBERT-ELLIOT BURST ERROR MODEL PARAMETERS
# =============================================================================

GOOD_STATE_BER = 1e-6
BAD_STATE_BER = 5e-3

P_GOOD_TO_BAD = 0.002
P_BAD_TO_GOOD = 0.05

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Simulated clock granularity (seconds per driving-loop iteration)
SIMULATION_TICK = 0.001  # 1 ms

# Default message size handed to the link layer per send
MESSAGE_SIZE = 64

# Default transfer size for a single run
DATA_SIZE = 4 * 1024

# Simulation time limit (seconds) - failsafe
MAX_SIMULATION_TIME = 600.0

RNG_SEED_BASE = 42

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

FRAME_SIZES = [4, 8, 16, 32, 64]
BAD_STATE_BERS = [1e-3, 5e-3, 1e-2, 2e-2]
CHECKSUM_KINDS = [CHECKSUM_PARITY, CHECKSUM_CRC]
RUNS_PER_CONFIGURATION = 3

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_INFO

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS (calculated from fixed parameters)
# =============================================================================

def calculate_check_bytes(checksum_kind=DEFAULT_CHECKSUM,
                          generator_width=CRC_GENERATOR_WIDTH):
    """Number of trailer bytes the checksum occupies."""
    if checksum_kind == CHECKSUM_PARITY:
        return 1
    return (generator_width - 1 + BITS_PER_BYTE - 1) // BITS_PER_BYTE

def calculate_max_wire_size(payload_size, max_frame_size=MAX_FRAME_SIZE,
                            checksum_kind=DEFAULT_CHECKSUM):
    """
    Worst-case wire size of a payload when every byte needs escaping.
    Each sub-frame adds Start + Stop + (escaped) check bytes.
    """
    sub_frames = max(1, -(-payload_size // max_frame_size))
    check_bytes = calculate_check_bytes(checksum_kind)
    return 2 * payload_size + sub_frames * (2 + 2 * check_bytes)

def calculate_transmission_time(num_bytes):
    """Calculate transmission time for a number of bytes."""
    return num_bytes * BITS_PER_BYTE / BIT_RATE

def calculate_steady_state_probabilities():
    """
    Calculate steady-state probabilities for Good and Bad states.
    π_G = P(B→G) / (P(G→B) + P(B→G))
    π_B = P(G→B) / (P(G→B) + P(B→G))
    """
    sum_transitions = P_GOOD_TO_BAD + P_BAD_TO_GOOD
    pi_good = P_BAD_TO_GOOD / sum_transitions
    pi_bad = P_GOOD_TO_BAD / sum_transitions
    return pi_good, pi_bad

def calculate_average_ber():
    """
    Calculate average BER based on steady-state probabilities.
    BER_avg = π_G * pg + π_B * pb
    """
    pi_good, pi_bad = calculate_steady_state_probabilities()
    return pi_good * GOOD_STATE_BER + pi_bad * BAD_STATE_BER
