"""Allow `python -m extcompat`."""

from extcompat.cli import main

if __name__ == "__main__":
    main()
