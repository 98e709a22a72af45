"""Speech Bridge: versioned cross-language API over a neural speech engine.

WHY: A neural ASR/diarization engine emits raw, engine-specific output:
flat sub-word token timings and overlapping speaker spans. A host process
written in another language needs clean words, display segments, and
non-overlapping speaker turns, delivered through a stable wire contract
with explicit resource ownership.

HOW: Three layers. core does the normalization (timing, words, segments,
diarization, vocabulary boosting); engine is the abstract port a concrete
engine implements; bridge holds sessions, opaque handles, buffers and
the versioned success/error envelope.

RULES:
- Core modules never touch the wire format or handles
- Every cross-boundary response is an envelope carrying SCHEMA_VERSION
- Vocabulary boosting is best-effort and never fails a request
"""

__version__ = "0.1.0"
