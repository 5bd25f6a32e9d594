"""
Data-link package - Byte-stuffed framing with error detection and
stop-and-wait ARQ.

Subpackages:
- framing: Tags, checksums, framer and deframer
- arq: Stop-and-wait controller and retransmission timer
- channel: Gilbert-Elliot burst error channel model
- layers: Physical byte pipe and the composed link layer
- utils: Receive buffer, metrics and logging
"""
