"""Engine port package: the seam between the bridge and the neural engine.

WHY: The bridge must work with whichever engine the deployment provides,
and tests must run without any model at all.

HOW: base.py defines the SpeechEngine and VocabularyBackend ABCs,
loader.py resolves the configured factory, assets.py installs and
downloads tokenizer files for vocabulary boosting.
"""

from speech_bridge.engine.base import SpeechEngine, VocabularyBackend

__all__ = ["SpeechEngine", "VocabularyBackend"]
