"""
Allow running possaga as a module: python -m possaga
"""

from possaga.cli.main import main

if __name__ == "__main__":
    main()
