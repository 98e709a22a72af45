"""Core normalization modules and intermediate representation.

WHY: The core package holds the only real algorithmic decisions in the
bridge: word merging, segmentation, word indexing, diarization cleanup
and vocabulary-term normalization. Incorrect handling here silently
corrupts output (garbled words, overlapping captions), so it is kept
pure and independently testable.

HOW: ir.py defines the data structures, timing.py the saturating
millisecond arithmetic, assembler.py builds words and transcripts,
segmenter.py builds display segments and indexes words into them,
diarization.py cleans speaker spans, vocabulary.py coordinates boosting.

RULES:
- Core modules know nothing about the wire format or handles
- Only vocabulary.py talks to the engine port, and only through the
  optional VocabularyBackend capability
- All times leaving the core are unsigned integer milliseconds
"""
