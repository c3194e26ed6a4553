"""Allow running with: python -m teamboard"""

from .cli.main import main

main()
