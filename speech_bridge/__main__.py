"""Package entry point for ``python -m speech_bridge``.

WHY: Lets operators run the CLI without the installed console script,
e.g. ``python -m speech_bridge transcribe meeting.wav``.

RULES:
- Delegates everything to cli.main() and exits with its return code
"""

import sys

if __name__ == "__main__":
    from speech_bridge.cli import main

    sys.exit(main())
