"""
Convenience entrypoint for the voice translator.

Allows running `python main.py` in addition to `python -m voice_translator`.
"""

from voice_translator.cli import main


if __name__ == "__main__":
    main()
