"""Entry point for running as module: python -m dexswap"""

from dexswap.main import main

if __name__ == "__main__":
    main()
